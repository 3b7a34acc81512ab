"""Tests for link assembly and the link/envelope models."""

import pytest
from pydantic import ValidationError

from linkseal.errors import InvalidStepNameError
from linkseal.kernel.link import Link, Metablock, Signature, assemble_link

MATERIALS = {"src/main.txt": {"sha256": "aa" * 32}}
PRODUCTS = {"out/result.txt": {"sha256": "bb" * 32}}
BYPRODUCTS = {"stdout": "ok\n", "stderr": "", "return-value": 0}


def test_assemble_link_fields():
    link = assemble_link("build", MATERIALS, PRODUCTS, BYPRODUCTS, ["echo", "ok"])
    assert link.type == "link"
    assert link.name == "build"
    assert link.materials == MATERIALS
    assert link.products == PRODUCTS
    assert link.byproducts == BYPRODUCTS
    assert link.command == ["echo", "ok"]
    assert link.environment == {}


def test_assemble_link_requires_name():
    with pytest.raises(InvalidStepNameError):
        assemble_link("", MATERIALS, PRODUCTS)


def test_assemble_link_with_nothing_recorded():
    link = assemble_link("noop", {}, {})
    assert link.materials == {}
    assert link.products == {}
    assert link.byproducts == {}
    assert link.command == []


def test_same_path_kept_in_materials_and_products():
    link = assemble_link(
        "edit",
        {"a.txt": {"sha256": "01"}},
        {"a.txt": {"sha256": "02"}},
    )
    assert link.materials["a.txt"] != link.products["a.txt"]


def test_assemble_link_copies_inputs():
    materials = {"a.txt": {"sha256": "01"}}
    command = ["make"]
    link = assemble_link("build", materials, {}, command=command)
    materials["a.txt"]["sha256"] = "ff"
    command.append("all")
    assert link.materials == {"a.txt": {"sha256": "01"}}
    assert link.command == ["make"]


def test_command_order_preserved():
    link = assemble_link("build", {}, {}, command=["z", "a", "--flag"])
    assert link.command == ["z", "a", "--flag"]


def test_link_to_dict_uses_type_alias():
    link = assemble_link("build", MATERIALS, PRODUCTS, BYPRODUCTS, ["echo", "ok"])
    data = link.to_dict()
    assert data["_type"] == "link"
    assert "type" not in data
    assert set(data) == {
        "_type", "name", "materials", "products", "byproducts", "command", "environment"
    }


def test_link_is_frozen():
    link = assemble_link("build", {}, {})
    with pytest.raises(ValidationError):
        link.name = "other"


def test_link_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        Link.model_validate({"_type": "link", "name": "x", "extra": 1})


def test_link_rejects_other_type():
    with pytest.raises(ValidationError):
        Link.model_validate({"_type": "layout", "name": "x"})


def test_metablock_dict_form():
    link = assemble_link("build", {}, {})
    unsigned = Metablock(signed=link)
    assert not unsigned.is_signed
    assert unsigned.to_dict() == {"signatures": [], "signed": link.to_dict()}

    signed = Metablock(signed=link, signatures=[Signature(keyid="ab", sig="cd")])
    assert signed.is_signed
    assert signed.to_dict()["signatures"] == [{"keyid": "ab", "sig": "cd"}]


def test_metablock_round_trips_through_dict():
    link = assemble_link("build", MATERIALS, PRODUCTS, BYPRODUCTS, ["echo", "ok"])
    metablock = Metablock(signed=link, signatures=[Signature(keyid="ab", sig="cd")])
    assert Metablock.model_validate(metablock.to_dict()) == metablock

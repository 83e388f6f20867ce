"""
Tests for resolving schemas by name.
"""

from typing import Annotated

import pytest
from structlog.testing import capture_logs

from binding import BaseRequest, ItemType, TypeErrorException, find_schema, get_schema


class RegLabel(BaseRequest):
    name: str = ""


class RegHolder(BaseRequest):
    labels: Annotated[list, ItemType("RegLabel")] = []


class RegForeignHolder(BaseRequest):
    __module__ = "shop.requests"

    labels: Annotated[list, ItemType("RegLabel")] = []


class RegUnique(BaseRequest):
    code: str = ""


class RegForeignUniqueHolder(BaseRequest):
    __module__ = "shop.requests"

    items: Annotated[list, ItemType("RegUnique")] = []


def declare_rival_label():
    class RegLabel(BaseRequest):
        label: str = ""

    return RegLabel


@pytest.fixture(scope="module")
def rival_label():
    with capture_logs() as logs:
        rival = declare_rival_label()
    return rival, logs


class TestLookup:
    def test_qualified_name(self):
        assert find_schema(f"{__name__}.RegUnique") is RegUnique

    def test_unique_bare_name(self):
        assert find_schema("RegUnique") is RegUnique
        assert find_schema(" RegUnique ") is RegUnique

    def test_unknown(self):
        assert find_schema("RegNowhere") is None
        with pytest.raises(ValueError, match="not registered"):
            get_schema("RegNowhere")

    def test_unique_name_from_other_module(self):
        holder = RegForeignUniqueHolder.parse({"items": [{"code": "x"}]})
        assert isinstance(holder.items[0], RegUnique)


class TestAmbiguousNames:
    def test_registration_warns(self, rival_label):
        _, logs = rival_label
        warnings = [e for e in logs if e["event"] == "schema_name_ambiguous"]
        assert warnings[0]["name"] == "RegLabel"
        assert len(warnings[0]["schemas"]) == 2

    def test_bare_name_does_not_resolve(self, rival_label):
        assert find_schema("RegLabel") is None
        with pytest.raises(ValueError, match="ambiguous"):
            get_schema("RegLabel")

    def test_module_of_referring_schema_wins(self, rival_label):
        rival, _ = rival_label
        assert find_schema("RegLabel", module=__name__) is RegLabel
        holder = RegHolder.parse({"labels": [{"name": "a"}]})
        assert type(holder.labels[0]) is RegLabel
        assert holder.labels[0].name == "a"
        assert type(holder.labels[0]) is not rival

    def test_qualified_names_still_resolve(self, rival_label):
        rival, _ = rival_label
        assert find_schema(f"{rival.__module__}.{rival.__qualname__}") is rival

    def test_ambiguous_item_type_is_type_error(self, rival_label):
        with pytest.raises(TypeErrorException) as exc_info:
            RegForeignHolder.parse({"labels": [{"name": "a"}]})
        assert exc_info.value.key == "labels"

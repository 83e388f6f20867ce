"""
Tests for binding parameter maps into request schemas.
"""

from typing import Annotated, Optional

import pytest
from pydantic import BaseModel
from structlog.testing import capture_logs

from binding import (
    BaseRequest,
    Binder,
    CanNotEmptyException,
    Doc,
    ItemType,
    MissParamException,
    NotEmpty,
    RequestVar,
    Required,
    TypeErrorException,
    bind,
    get_schema,
    is_empty,
)
from core.errors import ErrorCode


class BinderTag(BaseRequest):
    name: Annotated[str, NotEmpty] = ""
    weight: int = 1


class BinderAuthor(BaseRequest):
    required_vars = {"email"}

    email: str = ""
    age: int = 0


class BinderStats(BaseModel):
    views: int
    likes: int = 0


class BinderPost(BaseRequest):
    title: Annotated[str, Required, NotEmpty]
    userId: int = 0
    score: float = 0.0
    published: bool = False
    custom: Annotated[int, RequestVar("custom_key")] = 0
    tags: list[BinderTag] = []
    named_tags: Annotated[list, ItemType("BinderTag")] = []
    words: list = ["base"]
    numbers: list[int] = []
    author: Optional[BinderAuthor] = None
    stats: BinderStats | None = None
    extra: dict = {}


class BinderStatic(BaseRequest):
    required_vars = {"user_id"}
    not_empty_vars = ["nickname"]

    userId: int = 0
    nickname: str = "anon"


class BinderOrdered(BaseRequest):
    first: Annotated[str, Required]
    second: Annotated[str, Required]
    third: Annotated[str, NotEmpty] = ""


class BinderDocumented(BaseRequest):
    code: Annotated[str, Doc("""
        Invite code.
        @required
        @requestVar invite
    """)] = ""


class BinderUnknownItems(BaseRequest):
    things: Annotated[list, ItemType("NoSuchSchema")] = []


class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", "0", 0, 0.0, False, [], {}, ()])
    def test_empty(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["a", "0.0", " ", 1, -1, True, [0], {"a": None}])
    def test_not_empty(self, value):
        assert not is_empty(value)


class TestEmptyParams:
    def test_default_instance(self, binder):
        post = binder.bind({}, BinderPost)
        assert post.title is None
        assert post.userId == 0
        assert post.words == ["base"]
        assert post.author is None

    def test_mutable_defaults_not_shared(self, binder):
        first = binder.bind({}, BinderPost)
        second = binder.bind({}, BinderPost)
        first.words.append("x")
        assert second.words == ["base"]
        assert BinderPost.words == ["base"]

    def test_parse_without_params(self):
        assert BinderPost.parse().title is None
        assert BinderPost.parse(None) == BinderPost()


class TestScalars:
    def test_coercion(self, binder):
        post = binder.bind(
            {"title": "Hello", "userId": "42", "score": "2.5", "published": "1"},
            BinderPost,
        )
        assert post.title == "Hello"
        assert post.userId == 42
        assert post.score == 2.5
        assert post.published is True

    def test_string_coerced_from_number(self, binder):
        assert binder.bind({"title": 7}, BinderPost).title == "7"

    def test_very_long_digit_string(self, binder):
        post = binder.bind({"title": "t", "userId": "9" * 5000}, BinderPost)
        assert post.userId == 10 ** 5000 - 1

    def test_bool_zero_string_is_false(self, binder):
        assert binder.bind({"title": "t", "published": "0"}, BinderPost).published is False

    def test_composite_for_scalar_is_type_error(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"title": "t", "userId": [1, 2]}, BinderPost)
        assert exc_info.value.is_type_error
        assert exc_info.value.key == "userId"
        assert exc_info.value.error.code == ErrorCode.E2004_INVALID_TYPE

    def test_optional_scalar(self, binder):
        class BinderOptional(BaseRequest):
            limit: Optional[int] = None

        assert binder.bind({"limit": "5"}, BinderOptional).limit == 5
        assert binder.bind({"other": 1}, BinderOptional).limit is None


class TestKeyResolution:
    def test_snake_fallback(self, binder):
        assert binder.bind({"title": "t", "user_id": "9"}, BinderPost).userId == 9

    def test_exact_name_wins(self, binder):
        post = binder.bind({"title": "t", "userId": 1, "user_id": 2}, BinderPost)
        assert post.userId == 1

    def test_request_var(self, binder):
        post = binder.bind({"title": "t", "custom": 1, "custom_key": "3"}, BinderPost)
        assert post.custom == 3

    def test_doc_markers(self, binder):
        assert binder.bind({"invite": "abc"}, BinderDocumented).code == "abc"
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"code": "abc"}, BinderDocumented)
        assert exc_info.value.key == "invite"


class TestRequired:
    def test_missing_required(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"userId": 1}, BinderPost)
        assert exc_info.value.key == "title"
        assert exc_info.value.message == "missing title"
        assert not exc_info.value.is_type_error
        assert exc_info.value.error.code == ErrorCode.E2001_REQUIRED_FIELD_MISSING

    def test_optional_missing_keeps_default(self, binder):
        post = binder.bind({"title": "t"}, BinderPost)
        assert post.userId == 0
        assert post.words == ["base"]

    def test_required_vars_by_effective_key(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"nickname": "n"}, BinderStatic)
        assert exc_info.value.key == "user_id"

    def test_not_empty_vars_require_presence(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"user_id": 1}, BinderStatic)
        assert exc_info.value.key == "nickname"

    def test_static_sets_frozen(self):
        assert BinderStatic.required_vars == frozenset({"user_id"})
        assert BinderStatic.is_not_empty("nickname")
        assert BinderStatic.is_required("userId", "user_id")
        assert not BinderStatic.is_required("userId")

    def test_first_violation_wins(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"third": ""}, BinderOrdered)
        assert exc_info.value.key == "first"

    def test_later_violation_after_earlier_fields_pass(self, binder):
        with pytest.raises(CanNotEmptyException) as exc_info:
            binder.bind({"first": "a", "second": "b", "third": ""}, BinderOrdered)
        assert exc_info.value.key == "third"


class TestNotEmpty:
    @pytest.mark.parametrize("value", ["", "0", 0, False, [], None])
    def test_empty_rejected(self, binder, value):
        with pytest.raises(CanNotEmptyException) as exc_info:
            binder.bind({"title": value}, BinderPost)
        assert exc_info.value.message == "title can not be empty"
        assert exc_info.value.error.code == ErrorCode.E2005_CONSTRAINT_VIOLATION

    def test_not_empty_vars(self, binder):
        with pytest.raises(CanNotEmptyException):
            binder.bind({"user_id": 1, "nickname": ""}, BinderStatic)

    def test_absent_not_empty_field_is_missing(self, binder):
        with pytest.raises(MissParamException):
            binder.bind({"first": "a", "second": "b"}, BinderOrdered)


class TestArrays:
    def test_schema_items(self, binder):
        post = binder.bind(
            {"title": "t", "tags": [{"name": "a", "weight": "3"}, {"name": "b"}]},
            BinderPost,
        )
        assert [type(t) for t in post.tags] == [BinderTag, BinderTag]
        assert [(t.name, t.weight) for t in post.tags] == [("a", 3), ("b", 1)]

    def test_item_type_by_name(self, binder):
        post = binder.bind({"title": "t", "named_tags": [{"name": "x"}]}, BinderPost)
        assert post.named_tags[0].name == "x"

    def test_nested_constraint_enforced(self, binder):
        with pytest.raises(CanNotEmptyException) as exc_info:
            binder.bind({"title": "t", "tags": [{"name": ""}]}, BinderPost)
        assert exc_info.value.key == "name"

    def test_non_object_item_rejected(self, binder):
        with pytest.raises(TypeErrorException) as exc_info:
            binder.bind({"title": "t", "tags": ["not-an-object"]}, BinderPost)
        assert exc_info.value.key == "tags"

    def test_none_item_rejected(self, binder):
        with pytest.raises(TypeErrorException):
            binder.bind({"title": "t", "tags": [None]}, BinderPost)

    def test_non_array_rejected(self, binder):
        with pytest.raises(TypeErrorException) as exc_info:
            binder.bind({"title": "t", "tags": "a,b"}, BinderPost)
        assert exc_info.value.error.metadata["expected"] == "array"

    def test_scalar_items_coerced(self, binder):
        post = binder.bind({"title": "t", "numbers": ["1", 2, "3x"]}, BinderPost)
        assert post.numbers == [1, 2, 3]

    def test_untyped_items_are_strings(self, binder):
        post = binder.bind({"title": "t", "words": (1, "two")}, BinderPost)
        assert post.words == ["base", "1", "two"]

    def test_new_items_append_after_default(self, binder):
        post = binder.bind({"title": "t", "words": ["x", "y"]}, BinderPost)
        assert post.words == ["base", "x", "y"]

    def test_composite_scalar_item_rejected(self, binder):
        with pytest.raises(TypeErrorException):
            binder.bind({"title": "t", "numbers": [1, [2]]}, BinderPost)

    def test_unknown_item_type_even_when_empty(self, binder):
        with pytest.raises(TypeErrorException) as exc_info:
            binder.bind({"things": []}, BinderUnknownItems)
        assert exc_info.value.key == "things"


class TestObjects:
    def test_nested_schema(self, binder):
        post = binder.bind(
            {"title": "t", "author": {"email": "a@b.c", "age": "30"}},
            BinderPost,
        )
        assert isinstance(post.author, BinderAuthor)
        assert post.author.age == 30

    def test_nested_required(self, binder):
        with pytest.raises(MissParamException) as exc_info:
            binder.bind({"title": "t", "author": {"age": 1}}, BinderPost)
        assert exc_info.value.key == "email"

    def test_nested_not_object(self, binder):
        with pytest.raises(TypeErrorException):
            binder.bind({"title": "t", "author": "bob"}, BinderPost)

    def test_pydantic_model(self, binder):
        post = binder.bind({"title": "t", "stats": {"views": "10"}}, BinderPost)
        assert post.stats == BinderStats(views=10, likes=0)

    def test_pydantic_model_invalid(self, binder):
        with pytest.raises(TypeErrorException) as exc_info:
            binder.bind({"title": "t", "stats": {"likes": 1}}, BinderPost)
        assert exc_info.value.error.metadata["expected"] == "BinderStats"
        assert exc_info.value.__cause__ is not None

    def test_dict_field(self, binder):
        post = binder.bind({"title": "t", "extra": {"k": [1]}}, BinderPost)
        assert post.extra == {"k": [1]}


class TestBindContract:
    def test_rejects_non_schema(self, binder):
        with pytest.raises(TypeError):
            binder.bind({"a": 1}, dict)

    def test_rejects_non_mapping(self, binder):
        with pytest.raises(TypeError):
            binder.bind([("title", "t")], BinderPost)

    def test_module_bind(self):
        assert bind({"title": "t"}, BinderPost).title == "t"

    def test_custom_binder_used_for_nested(self, introspector):
        custom = Binder(introspector=introspector)
        post = custom.bind({"title": "t", "tags": [{"name": "a"}]}, BinderPost)
        assert post.tags[0].name == "a"

    def test_failure_logged(self, binder):
        with capture_logs() as logs:
            with pytest.raises(MissParamException):
                binder.bind({"userId": 1}, BinderPost)
        failed = [e for e in logs if e["event"] == "bind_failed"]
        assert failed[0]["schema"] == "BinderPost"
        assert failed[0]["error_code"] == "E2001_REQUIRED_FIELD_MISSING"
        assert failed[0]["key"] == "title"


class TestParseResult:
    def test_ok(self):
        result = BinderPost.parse_result({"title": "t"})
        assert result.is_ok()
        assert result.unwrap().title == "t"

    def test_err(self):
        result = BinderPost.parse_result({"userId": 1})
        assert result.is_err()
        error = result.unwrap_err()
        assert error.code == ErrorCode.E2001_REQUIRED_FIELD_MISSING
        assert error.metadata["field"] == "title"
        assert error.code.http_status == 400


class TestSerialization:
    def test_to_dict(self):
        post = BinderPost.parse({
            "title": "t",
            "tags": [{"name": "a"}],
            "stats": {"views": 1},
        })
        data = post.to_dict()
        assert data["title"] == "t"
        assert data["tags"] == [{"name": "a", "weight": 1}]
        assert data["stats"] == {"views": 1, "likes": 0}
        assert data["author"] is None

    def test_equality(self):
        assert BinderTag.parse({"name": "a"}) == BinderTag.parse({"name": "a"})
        assert BinderTag.parse({"name": "a"}) != BinderTag.parse({"name": "b"})
        assert BinderTag() != BinderAuthor()

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(BinderTag())

    def test_repr(self):
        assert repr(BinderTag.parse({"name": "a"})) == "BinderTag(name='a', weight=1)"


class TestRegistry:
    def test_lookup_by_name(self):
        assert get_schema("BinderTag") is BinderTag
        assert get_schema(f"{__name__}.BinderTag") is BinderTag

    def test_unknown(self):
        with pytest.raises(ValueError, match="NoSuchSchema"):
            get_schema("NoSuchSchema")

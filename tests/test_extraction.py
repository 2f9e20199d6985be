from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple, Union
from uuid import UUID

import pytest

from json_type_extractor.exceptions import (
    ConversionFailedError,
    DepthExceededError,
    ExtractionError,
    MissingRequiredFieldError,
    NoApplicableConverterError,
    TypeMismatchError,
)
from json_type_extractor.extraction import extract, extract_opt
from json_type_extractor.formats import DEFAULT_FORMATS, Formats, snake_to_camel
from json_type_extractor.io_utils import parse_json
from json_type_extractor.nodes import (
    JArray,
    JBool,
    JDecimal,
    JDouble,
    JInt,
    JNOTHING,
    JNULL,
    JObject,
    JString,
    JValue,
)
from tests.models import (
    Account,
    AliasedUser,
    Box,
    Chain,
    Checked,
    Color,
    Empty,
    Employee,
    Inventory,
    MaybePerson,
    Money,
    Person,
    Point,
    PositiveScore,
    Priority,
    Untyped,
    User,
)


class TestPrimitives:
    """Scalars convert only from the node variant that can represent them"""

    def test_int_from_number(self):
        assert extract(JInt(32), int) == 32

    def test_int_from_numeric_string_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JString("32"), int)

    def test_int_from_integral_double(self):
        assert extract(JDouble(2.0), int) == 2

    def test_int_from_fractional_double_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JDouble(2.5), int)

    def test_int_from_integral_decimal(self):
        assert extract(JDecimal(Decimal("3.00")), int) == 3

    def test_int_from_boolean_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JBool(True), int)

    def test_bool_from_number_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JInt(1), bool)

    def test_bool(self):
        assert extract(JBool(False), bool) is False

    def test_str(self):
        assert extract(JString("joe"), str) == "joe"

    def test_str_from_number_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JInt(1), str)

    def test_float_from_int(self):
        value = extract(JInt(3), float)
        assert value == 3.0
        assert isinstance(value, float)

    def test_float_overflow_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JInt(10 ** 400), float)

    def test_float_from_huge_decimal_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JDecimal(Decimal("1e999")), float)

    @pytest.mark.parametrize("text", ["Infinity", "-Infinity", "NaN"])
    def test_float_rejects_non_finite(self, text):
        with pytest.raises(ConversionFailedError):
            extract(parse_json(text), float)

    @pytest.mark.parametrize("value", ["Infinity", "NaN", "sNaN"])
    def test_float_rejects_non_finite_decimal(self, value):
        with pytest.raises(ConversionFailedError):
            extract(JDecimal(Decimal(value)), float)

    def test_decimal_from_double_keeps_short_repr(self):
        assert extract(JDouble(0.1), Decimal) == Decimal("0.1")

    def test_decimal_from_int(self):
        assert extract(JInt(7), Decimal) == Decimal(7)

    def test_datetime_with_default_format(self):
        value = extract(JString("2024-03-01T12:30:00Z"), datetime)
        assert value == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_datetime_with_custom_format_is_naive(self):
        formats = DEFAULT_FORMATS.with_date_format("%d/%m/%Y %H:%M")
        value = extract(JString("01/03/2024 12:30"), datetime, formats)
        assert value == datetime(2024, 3, 1, 12, 30)
        assert value.tzinfo is None

    def test_malformed_datetime_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JString("yesterday"), datetime)

    def test_datetime_from_number_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JInt(1700000000), datetime)

    def test_date(self):
        assert extract(JString("2024-03-01"), date) == date(2024, 3, 1)

    def test_uuid(self):
        text = "12345678-1234-5678-1234-567812345678"
        assert extract(JString(text), UUID) == UUID(text)

    def test_bad_uuid_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JString("not-a-uuid"), UUID)

    def test_enum_by_value(self):
        assert extract(JString("red"), Color) is Color.RED
        assert extract(JInt(2), Priority) is Priority.HIGH

    def test_unknown_enum_value_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(JString("blue"), Color)

    def test_enum_from_null_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JNULL, Color)

    def test_any_projects_to_python(self):
        node = parse_json('{"a": [1, 2.5, null, true], "b": {"c": "d"}}')
        assert extract(node, Any) == {"a": [1, 2.5, None, True], "b": {"c": "d"}}

    def test_any_from_nothing_fails(self):
        with pytest.raises(TypeMismatchError):
            extract(JNOTHING, Any)

    def test_node_target_passes_node_through(self):
        node = parse_json('{"a": 1}')
        assert extract(node, JObject) is node
        assert extract(node, JValue) is node

    def test_node_target_checks_variant(self):
        with pytest.raises(TypeMismatchError):
            extract(JInt(1), JObject)

    def test_nothing_is_not_a_primitive(self):
        with pytest.raises(TypeMismatchError):
            extract(JNOTHING, int)

    def test_plain_python_input_is_converted(self):
        assert extract({"name": "joe"}, Person) == Person("joe")


class TestOptional:
    """Only presence is optional; a present value must still convert"""

    @pytest.mark.parametrize("node", [JNULL, JNOTHING])
    def test_absent_is_none(self, node):
        assert extract(node, Optional[int]) is None

    def test_present_value(self):
        assert extract(JInt(3), Optional[int]) == 3

    def test_pipe_union_syntax(self):
        assert extract(JInt(3), int | None) == 3

    def test_inner_failure_propagates(self):
        with pytest.raises(TypeMismatchError):
            extract(JString("3"), Optional[int])

    def test_other_unions_are_unsupported(self):
        with pytest.raises(NoApplicableConverterError):
            extract(JInt(3), Union[int, str])


class TestCollections:
    def test_list(self):
        assert extract(parse_json("[1, 2, 3]"), List[int]) == [1, 2, 3]

    def test_sequence_gives_list(self):
        assert extract(parse_json("[1, 2]"), Sequence[int]) == [1, 2]

    def test_variadic_tuple(self):
        assert extract(parse_json("[1, 2]"), Tuple[int, ...]) == (1, 2)

    def test_bare_list(self):
        assert extract(parse_json('[1, "a"]'), list) == [1, "a"]

    @pytest.mark.parametrize("node", [JObject(), JString("[1]"), JInt(1), JNULL, JNOTHING])
    def test_non_array_fails(self, node):
        with pytest.raises(TypeMismatchError):
            extract(node, List[int])

    def test_element_failure_reports_index(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            extract(parse_json('[1, "x"]'), List[int])
        assert excinfo.value.path == (1,)

    def test_set_deduplicates_after_conversion(self):
        assert extract(parse_json("[1, 2, 2, 3, 1.0]"), Set[int]) == {1, 2, 3}

    def test_frozenset(self):
        value = extract(parse_json('["a", "b", "a"]'), FrozenSet[str])
        assert value == frozenset({"a", "b"})
        assert isinstance(value, frozenset)

    def test_set_of_unhashable_fails(self):
        with pytest.raises(ConversionFailedError):
            extract(parse_json('[{"a": 1}]'), Set[Dict[str, int]])

    def test_set_keeps_booleans_apart_from_numbers(self):
        with pytest.raises(ConversionFailedError):
            extract(parse_json("[1, true]"), Set[Any])
        assert extract(parse_json("[true, true, false]"), Set[Any]) == {True, False}

    def test_fixed_tuple(self):
        assert extract(parse_json('["a", 1]'), Tuple[str, int]) == ("a", 1)

    def test_fixed_tuple_length_mismatch(self):
        with pytest.raises(TypeMismatchError):
            extract(parse_json('["a", 1, 2]'), Tuple[str, int])

    def test_map(self):
        assert extract(parse_json('{"a": 1, "b": 2}'), Dict[str, int]) == {"a": 1, "b": 2}

    def test_map_duplicate_keys_last_wins(self):
        node = JObject([("a", JInt(1)), ("b", JInt(5)), ("a", JInt(2))])
        assert extract(node, Dict[str, int]) == {"a": 2, "b": 5}

    def test_map_from_parsed_duplicates(self):
        assert extract(parse_json('{"a": 1, "a": 2}'), Dict[str, int]) == {"a": 2}

    def test_map_ignores_overridden_bad_value(self):
        node = JObject([("a", JString("x")), ("a", JInt(2))])
        assert extract(node, Dict[str, int]) == {"a": 2}

    def test_map_requires_object(self):
        with pytest.raises(TypeMismatchError):
            extract(parse_json("[1]"), Dict[str, int])

    def test_map_with_non_string_keys_is_unsupported(self):
        with pytest.raises(NoApplicableConverterError):
            extract(parse_json('{"1": "a"}'), Dict[int, str])

    def test_map_value_failure_reports_key(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            extract(parse_json('{"items": {"apple": "many"}}'), Inventory)
        assert excinfo.value.path == ("items", "apple")


class TestRecords:
    def test_required_field(self):
        assert extract(parse_json('{"name": "joe"}'), Person) == Person("joe")

    def test_missing_required_field(self):
        with pytest.raises(MissingRequiredFieldError) as excinfo:
            extract(parse_json("{}"), Person)
        assert excinfo.value.path == ("name",)

    def test_missing_optional_field_is_none(self):
        assert extract(parse_json("{}"), MaybePerson) == MaybePerson(None)

    def test_constructor_fault_becomes_conversion_failure(self):
        with pytest.raises(ConversionFailedError) as excinfo:
            extract(parse_json('{"name": ""}'), Checked)
        assert isinstance(excinfo.value.__cause__, KeyError)
        assert extract(parse_json('{"name": "ok"}'), Checked) == Checked("ok")

    def test_unknown_keys_are_ignored(self):
        assert extract(parse_json('{"name": "joe", "age": 3}'), Person) == Person("joe")

    def test_defaults_fill_missing_fields(self):
        value = extract(parse_json('{"name": "ann", "age": 40}'), Employee)
        assert value == Employee("ann", 40, [], None)

    def test_null_for_defaulted_field_uses_default(self):
        value = extract(parse_json('{"name": "ann", "age": 40, "tags": null}'), Employee)
        assert value.tags == []

    def test_nested_record(self):
        value = extract(
            parse_json('{"name": "ann", "age": 40, "manager": {"name": "bob"}}'),
            Employee,
        )
        assert value.manager == Person("bob")

    def test_nested_failure_path(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            extract(parse_json('{"name": "ann", "age": 40, "manager": {"name": 5}}'), Employee)
        assert excinfo.value.path == ("manager", "name")
        assert "(at manager.name)" in str(excinfo.value)

    def test_failure_path_through_list(self):
        with pytest.raises(MissingRequiredFieldError) as excinfo:
            extract(parse_json('[{"name": "a"}, {}]'), List[Person])
        assert excinfo.value.path == (1, "name")
        assert "[1].name" in str(excinfo.value)

    def test_null_record_with_all_optional_fields(self):
        assert extract(JNULL, MaybePerson) == MaybePerson(None)

    def test_null_record_with_required_field(self):
        with pytest.raises(MissingRequiredFieldError):
            extract(JNULL, Person)

    def test_record_requires_object(self):
        with pytest.raises(TypeMismatchError):
            extract(JString("joe"), Person)

    def test_namedtuple(self):
        assert extract(parse_json('{"x": 1}'), Point) == Point(1, 0)

    def test_pydantic_model(self):
        assert extract(parse_json('{"name": "ann"}'), User) == User(name="ann")

    def test_pydantic_alias(self):
        assert extract(parse_json('{"userName": "ann"}'), AliasedUser).user_name == "ann"

    def test_pydantic_validation_failure(self):
        with pytest.raises(ConversionFailedError):
            extract(parse_json('{"score": -1}'), PositiveScore)

    def test_plain_class_with_annotated_init(self):
        assert extract(parse_json('{"amount": 1.5}'), Money) == Money(Decimal("1.5"))

    def test_plain_class_without_annotations_is_unsupported(self):
        with pytest.raises(NoApplicableConverterError):
            extract(parse_json('{"value": 1}'), Untyped)

    def test_class_without_constructor_is_unsupported(self):
        with pytest.raises(NoApplicableConverterError):
            extract(parse_json("{}"), Empty)

    def test_generic_record(self):
        assert extract(parse_json('{"item": 3}'), Box[int]) == Box(3)
        with pytest.raises(TypeMismatchError):
            extract(parse_json('{"item": "x"}'), Box[int])

    def test_field_naming_rule(self):
        formats = DEFAULT_FORMATS.with_field_naming(snake_to_camel)
        value = extract(
            parse_json('{"accountId": "a1", "createdAt": "2024-01-02T03:04:05Z"}'),
            Account,
            formats,
        )
        assert value.account_id == "a1"
        assert value.created_at.year == 2024

    def test_field_naming_rule_misses_declared_names(self):
        formats = DEFAULT_FORMATS.with_field_naming(snake_to_camel)
        with pytest.raises(MissingRequiredFieldError):
            extract(parse_json('{"account_id": "a1"}'), Account, formats)


class TestCustomConverters:
    def test_converter_overrides_structural_dispatch(self):
        formats = DEFAULT_FORMATS.with_converter(Point, lambda node: Point(*node.values))
        assert extract(parse_json("[1, 2]"), Point, formats) == Point(1, 2)

    def test_structural_dispatch_without_converter(self):
        with pytest.raises(TypeMismatchError):
            extract(parse_json("[1, 2]"), Point)

    def test_converter_applies_to_nested_types(self):
        formats = DEFAULT_FORMATS.with_converter(Point, lambda node: Point(*node.values))
        assert extract(parse_json("[[1, 2], [3, 4]]"), List[Point], formats) == [
            Point(1, 2),
            Point(3, 4),
        ]

    def test_converter_for_primitive(self):
        formats = DEFAULT_FORMATS.with_converter(int, lambda node: int(node.values))
        assert extract(JString("32"), int, formats) == 32
        assert extract(JString("32"), Optional[int], formats) == 32

    def test_converter_is_keyed_by_exact_type(self):
        formats = DEFAULT_FORMATS.with_converter(List[int], lambda node: [0])
        assert extract(parse_json("[1]"), List[int], formats) == [0]
        with pytest.raises(TypeMismatchError):
            extract(parse_json("[1]"), List[str], formats)

    def test_converter_fault_becomes_conversion_failure(self):
        def broken(node):
            raise ValueError("bad payload")

        formats = DEFAULT_FORMATS.with_converter(Person, broken)
        with pytest.raises(ConversionFailedError) as excinfo:
            extract(parse_json("{}"), Person, formats)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_converter_extraction_error_propagates_with_path(self):
        def strict(node):
            raise TypeMismatchError("no")

        formats = DEFAULT_FORMATS.with_converter(Person, strict)
        with pytest.raises(TypeMismatchError) as excinfo:
            extract(parse_json('{"manager": {}, "name": "a", "age": 1}'), Employee, formats)
        assert excinfo.value.path == ("manager",)


class TestDepthCeiling:
    def test_deep_record_chain_is_bounded(self, deep_chain):
        with pytest.raises(DepthExceededError):
            extract(deep_chain(150), Chain)

    def test_shallow_record_chain(self, deep_chain):
        value = extract(deep_chain(3), Chain)
        assert value.next.next.next == Chain(None)

    def test_configured_ceiling(self):
        formats = DEFAULT_FORMATS.with_max_depth(3)
        nested = parse_json("[[[[1]]]]")
        with pytest.raises(DepthExceededError):
            extract(nested, List[List[List[List[int]]]], formats)
        assert extract(parse_json("[[[1]]]"), List[List[List[int]]], formats) == [[[1]]]

    def test_any_projection_is_bounded(self):
        node = JArray()
        for _ in range(150):
            node = JArray([node])
        with pytest.raises(DepthExceededError):
            extract(node, Any)

    def test_ceiling_must_be_positive(self):
        with pytest.raises(ValueError):
            Formats(max_depth=0)


class TestExtractOpt:
    """extract_opt never raises for malformed input"""

    @pytest.mark.parametrize(
        ("node", "tp"),
        [
            (JString("32"), int),
            (JObject(), List[int]),
            (JObject(), Person),
            (JString("x"), datetime),
            (JInt(1), Union[int, str]),
            (JObject(), Untyped),
            (parse_json('{"name": ""}'), Checked),
            (parse_json("Infinity"), float),
            (JNOTHING, Any),
        ],
    )
    def test_failures_become_none(self, node, tp):
        assert extract_opt(node, tp) is None

    def test_depth_failure_becomes_none(self, deep_chain):
        assert extract_opt(deep_chain(150), Chain) is None

    def test_success(self):
        assert extract_opt(JInt(32), int) == 32

    def test_errors_share_a_base_class(self):
        for error in (
            TypeMismatchError,
            MissingRequiredFieldError,
            NoApplicableConverterError,
            ConversionFailedError,
            DepthExceededError,
        ):
            assert issubclass(error, ExtractionError)

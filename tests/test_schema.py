"""Tests for the SimpleSchema engine."""

import json
import logging

import pytest

from simpleschema import (
    MISSING,
    CastError,
    ConfigurationError,
    FieldError,
    InvalidValidatorError,
    OperationError,
    Options,
    ParamResult,
    SimpleSchema,
    UnknownTypeError,
)

side_effects = []


def record_side_effect(*args):
    side_effects.append(args)
    return 0


class Spy:
    """Callable that records its calls."""

    def __init__(self, returns=None):
        self.calls = []
        self.returns = returns

    def __call__(self, *args):
        self.calls.append(args)
        return self.returns


class TestValidate:
    """Test the full cast + params pipeline."""

    def test_partial_record_with_only_object_values(self, person_schema):
        result = person_schema.validate({"name": "Tony", "age": "15"}, {"only_object_values": True})
        assert result.record == {"name": "Tony", "age": 15}
        assert result.errors == []
        assert result.valid

    def test_missing_required_field(self, person_schema):
        result = person_schema.validate({"name": "Tony", "age": "15"})
        assert result.record == {"name": "Tony", "age": 15}
        assert result.errors == [FieldError("surname", "Field required: surname")]

    def test_input_not_modified(self, person_schema):
        record = {"name": "Tony", "surname": "Smith", "age": "15"}
        person_schema.validate(record)
        assert record == {"name": "Tony", "surname": "Smith", "age": "15"}

    def test_unknown_field_not_allowed(self, person_schema):
        result = person_schema.validate({"surname": "Smith", "foo": 1})
        assert result.errors == [FieldError("foo", "Field not allowed: foo")]
        assert "foo" not in result.record

    def test_unknown_field_kept_with_only_object_values(self, person_schema):
        result = person_schema.validate({"foo": 1}, {"only_object_values": True})
        assert result.record == {"foo": 1}
        assert result.errors == [FieldError("foo", "Field not allowed: foo")]

    def test_trim_truncates(self, person_schema):
        result = person_schema.validate({"surname": "Abcdefghijklmno"})
        assert result.record["surname"] == "Abcdefghij"

    def test_range_errors(self, person_schema):
        low = person_schema.validate({"surname": "S", "age": 5})
        high = person_schema.validate({"surname": "S", "age": "25"})
        assert low.errors == [FieldError("age", "Field is too low: age")]
        assert high.errors == [FieldError("age", "Field is too high: age")]

    def test_zero_skips_range_checks(self, person_schema):
        """0 is falsy, so min and max do not apply."""
        assert person_schema.validate({"surname": "S", "age": 0}).valid
        assert person_schema.validate({"surname": "S", "age": ""}).record["age"] == 0

    def test_failed_cast_keeps_original(self, person_schema):
        result = person_schema.validate({"name": "Tony", "age": "abc"})
        assert result.record == {"name": "Tony", "age": "abc"}
        assert result.errors == [
            FieldError("surname", "Field required: surname"),
            FieldError("age", "Error during casting"),
        ]

    def test_failed_cast_skips_params(self):
        spy = Spy()
        schema = SimpleSchema({"age": {"type": "number", "validator": spy}})
        result = schema.validate({"age": "abc"})
        assert spy.calls == []
        assert result.errors == [FieldError("age", "Error during casting")]

    def test_first_error_stops_field(self):
        spy = Spy(returns="never reported")
        schema = SimpleSchema({"age": {"type": "number", "min": 10, "validator": spy}})
        result = schema.validate({"age": 5})
        assert spy.calls == []
        assert result.errors == [FieldError("age", "Field is too low: age")]

    def test_error_on_one_field_does_not_stop_others(self):
        schema = SimpleSchema({
            "a": {"type": "number", "min": 10},
            "b": {"type": "number", "max": 1},
        })
        result = schema.validate({"a": 5, "b": 5})
        assert result.errors == [
            FieldError("a", "Field is too low: a"),
            FieldError("b", "Field is too high: b"),
        ]

    def test_absent_required_only_checks_required(self):
        """No other parameter runs for an absent required field."""
        spy = Spy()
        schema = SimpleSchema({
            "f": {"type": "string", "default": "x", "validator": spy, "required": True},
        })
        result = schema.validate({})
        assert result.record == {}
        assert result.errors == [FieldError("f", "Field required: f")]
        assert spy.calls == []

    def test_absent_optional_field_only_gets_default(self):
        """An absent field that is not required never errors and only default runs."""
        nick_check = Spy(returns="must be set")
        tags_check = Spy(returns="never reported")
        schema = SimpleSchema({
            "nick": {"type": "string", "validator": nick_check, "min": 3, "not_empty": True},
            "tags": {"type": "array", "validator": tags_check, "default": list},
        })
        result = schema.validate({})
        assert result.record == {"tags": []}
        assert result.valid
        assert nick_check.calls == []
        assert tags_check.calls == []

    def test_absent_required_with_skipped_cast(self, person_schema):
        """Skipping the cast of a required field still checks required."""
        result = person_schema.validate({}, {"skip_cast": ["surname"]})
        assert result.errors == [FieldError("surname", "Field required: surname")]

    def test_present_none_satisfies_required(self):
        schema = SimpleSchema({"f": {"type": "string", "required": True}})
        result = schema.validate({"f": None})
        assert result.record == {"f": ""}
        assert result.valid

    def test_literal_default(self):
        schema = SimpleSchema({"status": {"type": "string", "default": "new"}})
        assert schema.validate({}).record == {"status": "new"}
        assert schema.validate({"status": ""}).record == {"status": ""}

    def test_callable_default(self):
        """A callable default gives a fresh value every time."""
        schema = SimpleSchema({"tags": {"type": "array", "default": list}})
        first = schema.validate({}).record["tags"]
        second = schema.validate({}).record["tags"]
        assert first == []
        assert first is not second

    def test_parameter_order(self):
        schema = SimpleSchema({
            "upper": {"type": "string", "uppercase": True, "trim": 3},
            "short": {"type": "string", "trim": 2, "min": 3},
        })
        result = schema.validate({"upper": "abcdef", "short": "abcdef"})
        assert result.record == {"upper": "ABC", "short": "ab"}
        assert result.errors == [FieldError("short", "Field is too short: short")]

    def test_validator_reads_siblings(self):
        def same_as_password(record, value, field):
            if value != record.get("password"):
                return "Passwords differ"
            return None

        schema = SimpleSchema({
            "password": {"type": "string"},
            "confirm": {"type": "string", "validator": same_as_password},
        })
        assert schema.validate({"password": "a", "confirm": "a"}).valid
        assert schema.validate({"password": "a", "confirm": "b"}).errors == [
            FieldError("confirm", "Passwords differ")
        ]

    def test_validator_sees_transformed_value(self):
        spy = Spy()
        schema = SimpleSchema({"code": {"type": "string", "uppercase": True, "validator": spy}})
        schema.validate({"code": "ab"})
        record, value, field = spy.calls[0]
        assert value == "AB"
        assert field == "code"

    def test_validator_must_be_callable(self):
        schema = SimpleSchema({"x": {"type": "string", "validator": "nope"}})
        with pytest.raises(InvalidValidatorError):
            schema.validate({"x": "a"})

    def test_unknown_type_only_for_present_values(self):
        schema = SimpleSchema({"x": {"type": "nope"}})
        assert schema.validate({}).valid
        with pytest.raises(UnknownTypeError):
            schema.validate({"x": 1})

    def test_not_empty(self):
        schema = SimpleSchema({
            "title": {"type": "string", "not_empty": True},
            "count": {"type": "number", "not_empty": True},
        })
        assert schema.validate({}).valid
        assert schema.validate({"title": " "}).valid
        assert schema.validate({"title": ""}).errors == [
            FieldError("title", "Field cannot be empty: title")
        ]
        result = schema.validate({"count": None})
        assert result.record == {"count": 0}
        assert result.errors == [FieldError("count", "Field cannot be empty: count")]

    def test_type_options_are_not_parameters(self):
        schema = SimpleSchema({"flag": {"type": "boolean", "string_true_when": "yes"}})
        assert schema.validate({"flag": "yes"}).record == {"flag": True}
        assert schema.validate({"flag": "on"}).record == {"flag": False}

    def test_idempotent(self, person_schema):
        first = person_schema.validate({"name": "Tony", "surname": "Smith", "age": "15"})
        second = person_schema.validate(first.record)
        assert second.record == first.record
        assert second.valid

    def test_serialize_round_trip(self):
        schema = SimpleSchema({"payload": {"type": "serialize"}})
        encoded = schema.validate({"payload": {"a": [1, 2]}})
        assert isinstance(encoded.record["payload"], str)

        decoded = schema.validate(encoded.record, {"deserialize": True})
        assert decoded.record == {"payload": {"a": [1, 2]}}

    def test_malformed_serialized_value(self):
        schema = SimpleSchema({"payload": {"type": "serialize"}})
        result = schema.validate({"payload": "{not json"}, {"deserialize": True})
        assert result.record == {"payload": "{not json"}
        assert result.errors == [FieldError("payload", "Error during casting")]

    def test_serialized_callable_is_not_run(self):
        """Text naming a callable fails to cast and nothing is called."""
        payload = json.dumps({"py/reduce": [
            {"py/function": "test_schema.record_side_effect"},
            {"py/tuple": ["boom"]},
        ]})
        schema = SimpleSchema({"payload": {"type": "serialize"}})
        result = schema.validate({"payload": payload}, {"deserialize": True})
        assert side_effects == []
        assert result.record == {"payload": payload}
        assert result.errors == [FieldError("payload", "Error during casting")]

    def test_validate_many(self, person_schema):
        results = person_schema.validate_many([
            {"surname": "Smith"},
            {"name": "Tony"},
        ])
        assert [r.valid for r in results] == [True, False]


class TestOptionsHandling:
    """Test per-call and construction options."""

    def test_skip_cast(self, person_schema):
        result = person_schema.validate({"surname": "S", "age": "15"}, {"skip_cast": ["age"]})
        assert result.record["age"] == "15"
        assert result.valid

    def test_skip_params(self, person_schema):
        result = person_schema.validate(
            {"name": "Tony"}, Options(skip_params={"surname": ["required"]})
        )
        assert result.valid

    def test_skip_params_for_one_parameter(self, person_schema):
        result = person_schema.validate({"surname": "S", "age": 5}, {"skip_params": {"age": ["min"]}})
        assert result.valid

    def test_call_options_replace_defaults(self, person_structure):
        schema = SimpleSchema(person_structure, {"only_object_values": True})
        record = {"name": "Tony"}
        assert schema.validate(record).valid
        assert schema.validate(record, {}).errors == [
            FieldError("surname", "Field required: surname")
        ]


class TestCast:
    """Test the cast phase on its own."""

    def test_reports_failures(self, person_schema):
        result = person_schema.cast({"age": "abc"})
        assert result.record == {"age": "abc"}
        assert result.failed_casts == ["age"]
        assert result.failed_required == ["surname"]

    def test_skip_cast_does_not_mark_required(self, person_schema):
        result = person_schema.cast({}, {"skip_cast": ["surname"]})
        assert result.failed_required == []

    def test_handler_returning_missing_drops_field(self):
        schema = SimpleSchema({"secret": {"type": "drop"}})
        schema.register_type("drop", lambda definition, value, field, options: MISSING)
        assert schema.cast({"secret": "x"}).record == {}

    def test_failed_cast_is_logged(self, person_schema, caplog):
        with caplog.at_level(logging.DEBUG, logger="simpleschema.schema"):
            person_schema.cast({"age": "abc"})
        assert "Cast failed for field 'age'" in caplog.text


class TestRegistration:
    """Test custom type and parameter handlers."""

    def test_custom_type(self):
        def email_type(definition, value, field_name, options):
            text = str(value).strip().lower()
            if "@" not in text:
                raise CastError(f"Not an email: {value!r}", value=value)
            return text

        schema = SimpleSchema({"email": {"type": "email"}})
        schema.register_type("email", email_type)

        assert schema.validate({"email": " Tony@Example.com "}).record == {"email": "tony@example.com"}
        assert schema.validate({"email": "nope"}).errors == [
            FieldError("email", "Error during casting")
        ]

    def test_custom_param(self):
        def even_param(ctx):
            if ctx.parameter_value and ctx.value % 2:
                return ParamResult.error(f"Field must be even: {ctx.field_name}")
            return None

        schema = SimpleSchema({"n": {"type": "number", "even": True}})
        schema.register_param("even", even_param)

        assert schema.validate({"n": 4}).valid
        assert schema.validate({"n": 3}).errors == [FieldError("n", "Field must be even: n")]

    def test_duplicate_registration(self):
        schema = SimpleSchema({})
        with pytest.raises(OperationError):
            schema.register_type("string", lambda d, v, f, o: v)
        with pytest.raises(OperationError):
            schema.register_param("min", lambda ctx: None)

    def test_override_builtin(self):
        schema = SimpleSchema({"name": {"type": "string"}})
        schema.register_type("string", lambda d, v, f, o: "replaced", override=True)
        assert schema.validate({"name": "Tony"}).record == {"name": "replaced"}

    def test_type_is_reserved(self):
        with pytest.raises(ConfigurationError):
            SimpleSchema({}).register_param("type", lambda ctx: None)

    def test_registries_are_per_schema(self):
        first = SimpleSchema({})
        second = SimpleSchema({})
        first.register_type("custom", lambda d, v, f, o: v)
        assert first.types.has("custom")
        assert not second.types.has("custom")


class TestCleanup:
    """Test removing flagged fields."""

    def test_removes_flagged_fields(self):
        schema = SimpleSchema({
            "name": {"type": "string"},
            "password": {"type": "string", "protected": True},
            "token": {"type": "string", "protected": False},
        })
        record = {"name": "Tony", "password": "secret", "token": "t", "extra": 1}

        removed = schema.cleanup(record, "protected")

        assert removed == {"password": "secret"}
        assert record == {"name": "Tony", "token": "t", "extra": 1}

    def test_flag_is_not_a_parameter(self):
        schema = SimpleSchema({"password": {"type": "string", "protected": True}})
        assert schema.validate({"password": "secret"}).record == {"password": "secret"}

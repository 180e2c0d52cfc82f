"""Tests for analytics key normalization."""

from corvus_telemetry.normalize import normalize, normalize_key, start_case, words


class TestWords:
    """Tests for identifier splitting."""

    def test_camel_case(self):
        """camelCase splits at the capital letter."""
        assert words("firstName") == ["first", "Name"]

    def test_acronym(self):
        """An acronym followed by a word is its own word."""
        assert words("XMLHttpRequest") == ["XML", "Http", "Request"]

    def test_digits(self):
        """Digits and letters are separate words."""
        assert words("1key") == ["1", "key"]
        assert words("key1") == ["key", "1"]

    def test_separators(self):
        """Underscores, dashes and spaces separate words."""
        assert words("snake_case-key name") == ["snake", "case", "key", "name"]


class TestStartCase:
    """Tests for start casing."""

    def test_camel_case(self):
        assert start_case("streetNumber") == "Street Number"

    def test_snake_case(self):
        assert start_case("cpu_cores") == "Cpu Cores"

    def test_number_prefix(self):
        assert start_case("1key") == "1 Key"

    def test_already_start_case(self):
        """Start case keys are left as they are."""
        assert start_case("Start Case Key") == "Start Case Key"

    def test_non_ascii(self):
        """Non-ASCII letters are kept."""
        assert start_case("éclairFlavour") == "Éclair Flavour"


class TestNormalizeKey:
    """Tests for single key normalization."""

    def test_environment_variable_preserved(self):
        assert normalize_key("ETCHER_DISABLE_UPDATES") == "ETCHER_DISABLE_UPDATES"

    def test_mixed_case_reworded(self):
        assert normalize_key("FOO_bar") == "FOO Bar"

    def test_flattened_key_with_environment_variable(self):
        """Flattened keys keep their environment variable segments."""
        assert normalize_key("Foo FOO_BAR_BAZ") == "Foo FOO_BAR_BAZ"
        assert normalize_key("foo FOO_BAR bar_baz") == "Foo FOO_BAR Bar Baz"

    def test_non_string_key(self):
        """Non-string keys are converted to strings first."""
        assert normalize_key(42) == "42"


class TestNormalize:
    """Tests for event data normalization."""

    def test_nested_object(self):
        """Nested mappings become a flat mapping with start case keys."""
        data = {
            "person": {
                "firstName": "John",
                "lastName": "Doe",
                "address": {
                    "streetNumber": 13,
                    "streetName": "Elm",
                },
            },
        }

        assert normalize(data) == {
            "Person First Name": "John",
            "Person Last Name": "Doe",
            "Person Address Street Number": 13,
            "Person Address Street Name": "Elm",
        }

    def test_false_is_wrapped(self):
        assert normalize(False) == {"Value": False}

    def test_none_is_wrapped(self):
        assert normalize(None) == {"Value": None}

    def test_scalars_are_wrapped(self):
        assert normalize(3) == {"Value": 3}
        assert normalize("text") == {"Value": "text"}

    def test_environment_variable_preserved(self):
        assert normalize({"ETCHER_DISABLE_UPDATES": True}) == {"ETCHER_DISABLE_UPDATES": True}

    def test_environment_variable_inside_object(self):
        assert normalize({"foo": {"FOO_BAR_BAZ": 3}}) == {"Foo FOO_BAR_BAZ": 3}

    def test_key_starting_with_number(self):
        assert normalize({"foo": {"1key": 1}}) == {"Foo 1 Key": 1}

    def test_start_case_keys_unchanged(self):
        assert normalize({"Foo": {"Start Case Key": 42}}) == {"Foo Start Case Key": 42}

    def test_none_and_empty_leaves(self):
        """None values and empty mappings are leaves."""
        assert normalize({"a": None, "b": {}}) == {"A": None, "B": {}}

    def test_array_not_flattened(self):
        assert normalize([1, 2, {"nested": 3}]) == [1, 2, {"Nested": 3}]

    def test_array_property_not_flattened(self):
        assert normalize({"values": [1, 2, {"nested": 3}]}) == {
            "Values": [1, 2, {"Nested": 3}],
        }

    def test_nested_arrays_left_nested(self):
        assert normalize([1, 2, [3, 4]]) == [1, 2, [3, 4]]

    def test_mappings_inside_nested_arrays_untouched(self):
        assert normalize([[{"innerKey": 1}]]) == [[{"innerKey": 1}]]

    def test_array_elements_flattened_in_own_namespace(self):
        assert normalize([{"drive": {"sizeBytes": 8}}]) == [{"Drive Size Bytes": 8}]

    def test_tuple_becomes_list(self):
        assert normalize(("a", {"b": 1})) == ["a", {"B": 1}]

    def test_idempotent(self):
        """Normalizing normalized data changes nothing."""
        data = {"person": {"firstName": "John", "age": 30}, "tags": [{"aB": 1}]}
        once = normalize(data)
        assert normalize(once) == once

    def test_idempotent_with_environment_variable(self):
        once = normalize({"foo": {"FOO_BAR_BAZ": 3}, "ETCHER_FLAG": True})
        assert normalize(once) == once == {"Foo FOO_BAR_BAZ": 3, "ETCHER_FLAG": True}

    def test_input_not_modified(self):
        data = {"person": {"firstName": "John"}}
        normalize(data)
        assert data == {"person": {"firstName": "John"}}

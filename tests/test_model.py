import unittest

from callchain import mappings
from callchain.model import (
    ControllerEndpoint,
    SearchMode,
    coarse_key,
    coarse_key_of,
    full_identifier,
    join_paths,
    normalize_path,
)

from tests.factories import method


class TestIdentifiers(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(coarse_key("UserMapper", "selectAll"), "UserMapper#selectAll")
        self.assertEqual(full_identifier("S", "find", ("Long", "String")), "S#find#(Long,String)")
        self.assertEqual(full_identifier("S", "find", ()), "S#find#()")

    def test_coarse_key_of(self):
        self.assertEqual(coarse_key_of("S#find#(Long,String)"), "S#find")
        self.assertEqual(coarse_key_of("S#find"), "S#find")

    def test_method_keys(self):
        m = method("S", "find", "Long")
        self.assertEqual(m.coarse_key, "S#find")
        self.assertEqual(m.identifier, "S#find#(Long)")
        self.assertEqual(m.mapping_key, "find#(Long)")

    def test_endpoint_url(self):
        endpoint = ControllerEndpoint("C#m#()", "C", "m", "()", class_path="/api/", method_path="list")
        self.assertEqual(endpoint.url, "/api/list")

    def test_url_helpers_shared_with_mappings(self):
        self.assertIs(mappings.join_paths, join_paths)
        self.assertEqual(normalize_path("list/"), "/list")
        self.assertEqual(join_paths("/", "/"), "")


class TestSearchMode(unittest.TestCase):
    def test_names_and_codes(self):
        self.assertIs(SearchMode.parse("mapper"), SearchMode.MAPPER)
        self.assertIs(SearchMode.parse("mapper-class"), SearchMode.MAPPER)
        self.assertIs(SearchMode.parse("0"), SearchMode.MAPPER)
        self.assertIs(SearchMode.parse("1"), SearchMode.METHOD)
        self.assertIs(SearchMode.parse(" Constant "), SearchMode.CONSTANT)
        self.assertIs(SearchMode.parse("2"), SearchMode.CONSTANT)

    def test_unknown(self):
        with self.assertRaises(ValueError):
            SearchMode.parse("3")


if __name__ == "__main__":
    unittest.main()

import unittest

from callchain.scope import cast_type, resolve_callee_class

from tests.factories import index_of, type_decl


class TestResolveCalleeClass(unittest.TestCase):
    def setUp(self):
        self.index = index_of(
            type_decl("Base"),
            type_decl("Child", extends=["Base"], fields={"repo": "UserMapper", "Base": "Shadow"}),
            type_decl("Orphan"),
        )

    def test_no_receiver(self):
        self.assertEqual(resolve_callee_class(None, "Child", self.index), "Child")

    def test_this(self):
        self.assertEqual(resolve_callee_class("this", "Child", self.index), "Child")

    def test_super(self):
        self.assertEqual(resolve_callee_class("super", "Child", self.index), "Base")

    def test_super_without_superclass(self):
        self.assertEqual(resolve_callee_class("super", "Orphan", self.index), "Orphan")

    def test_dotted_takes_last_segment(self):
        self.assertEqual(resolve_callee_class("this.repo", "Child", self.index), "repo")
        self.assertEqual(resolve_callee_class("com.acme.Util", "Child", self.index), "Util")

    def test_cast_resolves_to_cast_type(self):
        self.assertEqual(resolve_callee_class("((UserMapper) bean)", "Child", self.index), "UserMapper")
        self.assertEqual(resolve_callee_class("((com.acme.UserMapper) ctx.getBean(x))", "Child", self.index), "UserMapper")

    def test_cast_type_needs_wrapping_parens(self):
        self.assertEqual(cast_type("((List<String>) items)"), "List")
        self.assertIsNone(cast_type("((Foo) bar).baz()"))
        self.assertIsNone(cast_type("(a + b)"))
        self.assertEqual(resolve_callee_class("((Foo) bar).baz()", "Child", self.index), "baz()")

    def test_field_type(self):
        self.assertEqual(resolve_callee_class("repo", "Child", self.index), "UserMapper")

    def test_verbatim_fallback(self):
        self.assertEqual(resolve_callee_class("StringUtils", "Child", self.index), "StringUtils")

    def test_field_of_other_class_not_used(self):
        self.assertEqual(resolve_callee_class("repo", "Orphan", self.index), "repo")


if __name__ == "__main__":
    unittest.main()

"""
Attribute list tests

Tests quoting styles, #id and .class shorthand, bare keys, and rejection of
malformed lists.
"""

import pytest

from bangumicard.lib.parser import Parser, ASTNode, attributes_parse


class TestAttributeParsing:
    """attributes_parse()"""

    @pytest.mark.parametrize("raw,expected", [
        ('user="sai"', {"user": "sai"}),
        ("user='sai'", {"user": "sai"}),
        ("user=sai", {"user": "sai"}),
        ('user = "sai"', {"user": "sai"}),
        ('user="two words"', {"user": "two words"}),
        ('user=""', {"user": ""}),
        ("hidden", {"hidden": ""}),
        ("", {}),
        (None, {}),
    ])
    def test_values(self, raw, expected):
        assert attributes_parse(raw).properties == expected

    def test_id_and_classes(self):
        """Shorthand lands in id/class properties"""
        parsed = attributes_parse('#me .a .b user="sai"')

        assert parsed.properties == {"id": "me", "class": "a b", "user": "sai"}
        assert parsed.classes == ["a", "b"]

    def test_last_value_wins(self):
        """Repeated keys keep the last value"""
        assert attributes_parse('user=a user=b').properties == {"user": "b"}

    def test_braces_inside_quotes(self):
        """Quoted values may contain braces"""
        node = Parser('::bangumi{user="a}b"}').parse()[0]
        assert node.properties == {"user": "a}b"}

    @pytest.mark.parametrize("raw", ['user="unterminated', "=x", 'user=a "stray"'])
    def test_malformed(self, raw):
        with pytest.raises(ValueError):
            attributes_parse(raw)


class TestMalformedInSource:
    """Malformed attribute lists leave the directive as text"""

    def test_leaf_with_bad_attributes(self):
        segments = Parser('::bangumi{"oops"}\n').parse()
        assert not any(isinstance(s, ASTNode) for s in segments)
        assert segments[0].text == '::bangumi{"oops"}\n'

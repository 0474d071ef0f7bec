import pytest

from asn1fmt import FormatConfig, format_asn1
from asn1fmt.parser.scanner import split_top_level, split_trailing_comment


PERSON = """\
Person ::= SEQUENCE {
name UTF8String,
age INTEGER
}"""

NESTED = """\
Person ::= SEQUENCE {
name UTF8String,
address SEQUENCE {
street UTF8String,
city UTF8String
}
}"""

MODULE = """\
-- Certificate request syntax
PKCS-10 DEFINITIONS IMPLICIT TAGS ::= BEGIN
IMPORTS Name, AlgorithmIdentifier FROM PKIX1;

CertificationRequest ::= SEQUENCE {
    certificationRequestInfo  CertificationRequestInfo,
    signatureAlgorithm        AlgorithmIdentifier,
    signature                 BIT STRING
}
CertificationRequestInfo ::= SEQUENCE {
    version             INTEGER { v1(0) } (v1,...),
    subject             Name,  -- distinguished name
    subjectPKInfo       SubjectPublicKeyInfo,
    attributes          [0] IMPLICIT Attributes
}
Version ::= INTEGER
Status ::= ENUMERATED { active(0), inactive(1), ... }
END
"""

MODULE_EXPECTED = """\
-- Certificate request syntax
PKCS-10 DEFINITIONS IMPLICIT TAGS ::= BEGIN

  IMPORTS Name, AlgorithmIdentifier FROM PKIX1;

  CertificationRequest ::= SEQUENCE {
    certificationRequestInfo CertificationRequestInfo,
    signatureAlgorithm AlgorithmIdentifier,
    signature BIT STRING
  }

  CertificationRequestInfo ::= SEQUENCE {
    version INTEGER { v1(0) } (v1,...),
    subject Name, -- distinguished name
    subjectPKInfo SubjectPublicKeyInfo,
    attributes [0] IMPLICIT Attributes
  }

  Version ::= INTEGER
  Status ::= ENUMERATED {
    active(0),
    inactive(1),
    ...
  }

END
"""

WELL_FORMED = [
    PERSON,
    NESTED,
    MODULE,
    "Person::=SEQUENCE{name UTF8String}",
    "Pair ::= SET { a INTEGER, b CHOICE { x NULL, y BOOLEAN } OPTIONAL }",
    "-* block\ncomment *-\nAge ::= INTEGER (0..150) -- years\n\n\n\nName ::= UTF8String",
    "T ::= SEQUENCE {\n-- leading\na INTEGER, b INTEGER, -- two on a line\nc SEQUENCE {\nd NULL -- deep\n}\n}",
    'S ::= SEQUENCE { label UTF8String DEFAULT "a, {b}", n INTEGER }',
    "id-pkix OBJECT IDENTIFIER ::= {\niso(1) dod(6)\ninternet(1)\n}",
    "A ::= SEQUENCE {\na INTEGER\n(0..10),\nb BOOLEAN\n}",
    "T ::= SEQUENCE {\nc SEQUENCE {\n-- first\nd NULL, -- deep\ne BOOLEAN\n} OPTIONAL -- closing\n}",
    "V ::= INTEGER {\n  v1(0), -- first\n  v2(1)\n}",
]


def _brace_counts(text):
    return text.count("{"), text.count("}")


def _line_with(text, needle):
    return next(line for line in text.split("\n") if needle in line)


class TestCanonicalForm:
    def test_indent_scaling_two(self):
        assert format_asn1(PERSON, FormatConfig(indent_width=2)) == (
            "Person ::= SEQUENCE {\n  name UTF8String,\n  age INTEGER\n}\n"
        )

    def test_indent_scaling_four(self):
        result = format_asn1(PERSON, FormatConfig(indent_width=4))
        assert "\n    name UTF8String,\n    age INTEGER\n" in result

    def test_nesting(self):
        lines = format_asn1(NESTED).split("\n")
        assert lines[:7] == [
            "Person ::= SEQUENCE {",
            "  name UTF8String,",
            "  address SEQUENCE {",
            "    street UTF8String,",
            "    city UTF8String",
            "  }",
            "}",
        ]

    def test_multiple_levels_of_nesting(self):
        source = "Root ::= SEQUENCE {\nlevel1 SEQUENCE {\nlevel2 SEQUENCE {\nvalue INTEGER\n}\n}\n}"
        assert "      value INTEGER\n" in format_asn1(source)

    def test_operator_spacing(self):
        result = format_asn1("Person::=SEQUENCE{name UTF8String}")
        assert result.startswith("Person ::= SEQUENCE {\n")

    @pytest.mark.parametrize("kind", ["CHOICE", "SET"])
    def test_choice_and_set(self, kind):
        source = f"Value ::= {kind} {{\nnumber INTEGER,\ntext UTF8String\n}}"
        assert format_asn1(source) == (
            f"Value ::= {kind} {{\n  number INTEGER,\n  text UTF8String\n}}\n"
        )

    def test_enumerated(self):
        source = "Status ::= ENUMERATED {\nactive(0),\ninactive(1),\npending(2)\n}"
        assert format_asn1(source).split("\n")[:5] == [
            "Status ::= ENUMERATED {",
            "  active(0),",
            "  inactive(1),",
            "  pending(2)",
            "}",
        ]

    def test_full_module(self):
        assert format_asn1(MODULE) == MODULE_EXPECTED

    def test_primitive_alias_unchanged(self):
        assert format_asn1("Person ::= INTEGER") == "Person ::= INTEGER\n"

    def test_fields_on_one_line_are_split(self):
        source = "Person ::= SEQUENCE {\nname UTF8String,age INTEGER\n}"
        assert "  name UTF8String,\n  age INTEGER\n" in format_asn1(source)

    def test_blank_line_runs_collapse(self):
        result = format_asn1("A ::= INTEGER\n\n\n\n\nB ::= INTEGER")
        assert result == "A ::= INTEGER\n\nB ::= INTEGER\n"

    def test_object_identifier_value_lines_kept(self):
        source = "id-pkix OBJECT IDENTIFIER ::= {\niso(1) dod(6)\ninternet(1)\n}"
        result = format_asn1(source)
        assert result == "id-pkix OBJECT IDENTIFIER ::= {\n  iso(1) dod(6)\n  internet(1)\n}\n"
        assert result.count(",") == 0

    def test_named_number_list_inside_sequence(self):
        source = "T ::= SEQUENCE {\nversion INTEGER {\nv1(0),\nv2(1)\n} DEFAULT v1,\nflag BOOLEAN\n}"
        assert format_asn1(source) == (
            "T ::= SEQUENCE {\n"
            "  version INTEGER {\n"
            "    v1(0),\n"
            "    v2(1)\n"
            "  } DEFAULT v1,\n"
            "  flag BOOLEAN\n"
            "}\n"
        )

    def test_crlf_and_tabs(self):
        source = "Person ::= SEQUENCE {\r\n\tname UTF8String\r\n}\r\n"
        assert format_asn1(source) == "Person ::= SEQUENCE {\n  name UTF8String\n}\n"


class TestComments:
    def test_single_line_comments_preserved(self):
        source = "-- Top level comment\nPerson ::= SEQUENCE {\nname UTF8String, -- Name comment\nage INTEGER\n}"
        result = format_asn1(source)
        assert result.startswith("-- Top level comment\n")
        assert "  name UTF8String, -- Name comment\n" in result

    def test_multi_line_comment_preserved(self):
        source = "-* This is a \nmulti-line comment *-\nPerson ::= SEQUENCE {\nname UTF8String\n}"
        assert "-* This is a \nmulti-line comment *-" in format_asn1(source)

    def test_comment_stays_inside_definition(self):
        source = "T ::= SEQUENCE {\na INTEGER,\n-- between\nb INTEGER\n}"
        lines = format_asn1(source).split("\n")
        assert lines.index("  -- between") == 2
        assert lines[3] == "  b INTEGER"

    def test_nested_comments_stay_with_their_members(self):
        source = "T ::= SEQUENCE {\nc SEQUENCE {\nd NULL, -- deep\n-- about e\ne BOOLEAN\n}\n}"
        assert format_asn1(source) == (
            "T ::= SEQUENCE {\n"
            "  c SEQUENCE {\n"
            "    d NULL, -- deep\n"
            "    -- about e\n"
            "    e BOOLEAN\n"
            "  }\n"
            "}\n"
        )

    def test_comment_between_assignment_and_type(self):
        assert format_asn1("Foo ::=\n-- note\nINTEGER") == "-- note\nFoo ::= INTEGER\n"


class TestProperties:
    @pytest.mark.parametrize("source", WELL_FORMED)
    def test_idempotent(self, source):
        once = format_asn1(source)
        assert format_asn1(once) == once

    @pytest.mark.parametrize("source", WELL_FORMED)
    def test_brace_balance_preserved(self, source):
        assert _brace_counts(format_asn1(source)) == _brace_counts(source)

    @pytest.mark.parametrize("n", [1, 2, 5, 12])
    def test_field_count_preserved(self, n):
        fields = ", ".join(f"f{i} INTEGER" for i in range(n))
        result = format_asn1(f"T ::= SEQUENCE {{ {fields} }}")
        field_lines = [l for l in result.split("\n") if l.strip().startswith("f")]
        assert len(field_lines) == n

    def test_field_count_with_multi_line_fields(self):
        source = "A ::= SEQUENCE {\na INTEGER\n(0..10),\nb BOOLEAN\n}"
        result = format_asn1(source)
        assert result == "A ::= SEQUENCE {\n  a INTEGER (0..10),\n  b BOOLEAN\n}\n"

    @pytest.mark.parametrize("source", WELL_FORMED)
    def test_comments_stay_on_their_member_line(self, source):
        result = format_asn1(source)
        for line in source.split("\n"):
            code, comment = split_trailing_comment(line.strip())
            if not comment:
                continue
            out_line = _line_with(result, comment)
            segments = split_top_level(code)
            if segments:
                assert segments[-1] in out_line


class TestTotality:
    @pytest.mark.parametrize(
        "source",
        [
            "",
            "{",
            "}}}}",
            '"unterminated',
            'A ::= SEQUENCE { a UTF8String DEFAULT "oops }',
            "A ::= SEQUENCE {\nB ::= SEQUENCE {\n",
            "::=",
            "A ::=",
            "-* never closed\nA ::= INTEGER",
            "{" * 3000,
            "a SEQUENCE { " * 200 + "}" * 200,
            "END\nEND\nBEGIN",
        ],
    )
    def test_never_raises(self, source):
        assert isinstance(format_asn1(source), str)

    def test_empty_and_whitespace(self):
        assert format_asn1("") == ""
        assert format_asn1("   \n  \n  ") == ""
        assert format_asn1(None) == ""

    def test_missing_final_brace_reindents(self):
        source = "Person ::= SEQUENCE {\nname UTF8String,\nage INTEGER"
        result = format_asn1(source)
        assert result == "Person ::= SEQUENCE {\n  name UTF8String,\n  age INTEGER"

    def test_re_indented_text_keeps_final_newline(self):
        source = "Person ::= SEQUENCE {\nname UTF8String,\nage INTEGER\n"
        result = format_asn1(source)
        assert result == "Person ::= SEQUENCE {\n  name UTF8String,\n  age INTEGER\n"

    def test_brace_opened_after_closing_brace_reindents(self):
        source = "C ::= CLASS {\n&id INTEGER\n} WITH SYNTAX {\nID &id\n}\n"
        assert format_asn1(source) == (
            "C ::= CLASS {\n  &id INTEGER\n} WITH SYNTAX {\n  ID &id\n}\n"
        )

    def test_malformed_brackets(self):
        source = "Person ::= SEQUENCE {\nname UTF8String\n// Missing closing bracket"
        result = format_asn1(source)
        assert result
        assert len(result.split("\n")) == 3

    def test_deep_nesting_falls_back(self):
        source = "T ::= SEQUENCE {\n" + "a SEQUENCE {\n" * 10 + "x NULL\n" + "}\n" * 11
        result = format_asn1(source, FormatConfig(max_depth=4))
        assert len(result.split("\n")) == len(source.split("\n"))


class TestConfiguration:
    def test_mapping_with_host_setting_names(self):
        result = format_asn1(PERSON, {"indentSize": 3, "formatOnSave": True})
        assert "\n   name UTF8String,\n" in result

    def test_non_positive_indent_is_clamped(self):
        result = format_asn1(PERSON, FormatConfig(indent_width=0))
        assert "\n name UTF8String,\n" in result

    def test_unusable_config_uses_defaults(self):
        assert format_asn1(PERSON, config=42) == format_asn1(PERSON)

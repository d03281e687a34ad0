"""
Tests for compiling and executing LDPath programs.
"""

from datetime import datetime

import pytest
from rdflib import Literal, URIRef

from rdf_transform.exceptions import (
    DuplicateFieldError,
    EmptyProgramError,
    ProgramParseError,
    SelectorSyntaxError,
    TraversalError,
    UnknownSelectorFunction,
)
from rdf_transform.graph import GraphSource
from rdf_transform.ldpath import (
    AndTest,
    FieldRule,
    FilteredSelector,
    FunctionSelector,
    IntersectionSelector,
    LanguageTest,
    LDPathTransform,
    NotTest,
    OrTest,
    PathTest,
    PropertySelector,
    Program,
    RecursiveSelector,
    SelfSelector,
    compile_program,
)

EX = "http://example.org/"
PREFIX = "@prefix ex : <http://example.org/> ;\n"


def run(graph, source):
    return compile_program(PREFIX + source).execute(graph).to_python()


def values(graph, selector):
    return run(graph, f"v = {selector} ;")["v"]


class TestFieldProjection:
    """Basic field extraction from the root node."""

    def test_title_and_descriptions(self, report_graph):
        result = run(report_graph, "name = dc:title ; desc = dc:description ;")
        assert result == {"name": ["Report"], "desc": ["A", "B"]}

    def test_fields_keep_declaration_order(self, report_graph):
        result = compile_program("b = dc:title ; a = dc:description ;").execute(report_graph)
        assert list(result) == ["b", "a"]

    def test_empty_selection_is_empty_list(self, report_graph):
        result = run(report_graph, "title = dc:title ; missing = ex:nothing ;")
        assert result["missing"] == []

    def test_raw_values_are_rdf_nodes(self, report_graph):
        result = compile_program("t = dc:title ;").execute(report_graph)
        assert result["t"] == [Literal("Report")]

    def test_self(self, report_graph):
        assert values(report_graph, ".") == [EX + "r1"]

    def test_full_iri_property(self, report_graph):
        assert values(report_graph, "<http://purl.org/dc/elements/1.1/title>") == ["Report"]

    def test_reverse_property(self, report_graph):
        assert values(report_graph, "^dcterms:isPartOf") == [EX + "c1", EX + "c2"]

    def test_path(self, report_graph):
        assert values(report_graph, "dc:creator / foaf:name") == ["Alice"]

    def test_wildcard_is_ordered(self, report_graph):
        assert values(report_graph, "dc:creator / *") == [
            "Alice", "mailto:alice@example.org",
        ]

    def test_reverse_wildcard(self, report_graph):
        assert values(report_graph, "^*") == [EX + "c1", EX + "c2", EX + "c3"]

    def test_union_keeps_left_first(self, report_graph):
        assert values(report_graph, "dc:title | dc:description") == ["Report", "A", "B"]
        assert values(report_graph, "dc:description | dc:title") == ["A", "B", "Report"]

    def test_union_drops_repeats(self, report_graph):
        assert values(report_graph, "dc:description | ex:summary") == ["A", "B"]

    def test_intersection(self, report_graph):
        assert values(report_graph, "dc:description & ex:summary") == ["B"]

    def test_string_constant(self, report_graph):
        assert values(report_graph, '"fixed"') == ["fixed"]


class TestRecursion:
    """(s)+, (s)* and bounded repetition over a cyclic part chain."""

    def test_plus_returns_to_context_through_cycle(self, report_graph):
        assert values(report_graph, "(dcterms:hasPart)+") == [
            EX + "c1", EX + "c2", EX + "c3", EX + "r1",
        ]

    def test_star_includes_context(self, report_graph):
        assert values(report_graph, "(dcterms:hasPart)*") == [
            EX + "r1", EX + "c1", EX + "c2", EX + "c3",
        ]

    def test_bounded(self, report_graph):
        assert values(report_graph, "(dcterms:hasPart){1,2}") == [EX + "c1", EX + "c2"]

    def test_lower_bound_only(self, report_graph):
        assert values(report_graph, "(dcterms:hasPart){2,}") == [
            EX + "c2", EX + "c3", EX + "r1", EX + "c1",
        ]

    def test_upper_bound_only(self, report_graph):
        assert values(report_graph, "(dcterms:hasPart){,1}") == [EX + "r1", EX + "c1"]

    def test_recursive_selector_fields(self):
        program = compile_program("v = (dcterms:hasPart){2,4} ;")
        selector = program.get_field("v").selector
        assert isinstance(selector, RecursiveSelector)
        assert (selector.min_depth, selector.max_depth) == (2, 4)

    def test_plus_counts_start_node_on_cycle(self):
        a, b = URIRef(EX + "a"), URIRef(EX + "b")
        p = URIRef(EX + "p")
        graph = GraphSource.from_triples([(a, p, b), (b, p, a)], a)
        assert values(graph, "(ex:p)+") == [EX + "b", EX + "a"]

    def test_exact_depth_keeps_node_reached_earlier(self):
        a, b, c = URIRef(EX + "a"), URIRef(EX + "b"), URIRef(EX + "c")
        p = URIRef(EX + "p")
        graph = GraphSource.from_triples([(a, p, b), (a, p, c), (b, p, c)], a)
        assert values(graph, "(ex:p){2,2}") == [EX + "c"]
        assert values(graph, "(ex:p){1,2}") == [EX + "b", EX + "c"]


class TestGroupedTests:
    """Parenthesised node tests and their rendering."""

    @pytest.fixture
    def label_graph(self):
        r = URIRef(EX + "r")
        label = URIRef(EX + "l")
        return GraphSource.from_triples([
            (r, label, Literal("x", lang="en")),
            (r, label, Literal("y", lang="de")),
            (r, label, Literal("z")),
        ], r)

    def test_negated_group(self, label_graph):
        assert values(label_graph, "ex:l[!(@en | @de)]") == ["z"]

    def test_group_inside_and(self, label_graph):
        assert values(label_graph, 'ex:l[(is "x" | is "z") & !@en]') == ["z"]

    def test_group_as_path(self, report_graph):
        assert values(report_graph, '^dcterms:isPartOf[(dc:title | ex:none)/. is "Notes"]') == [
            EX + "c2",
        ]

    def test_test_used_as_path_is_rejected(self):
        with pytest.raises(SelectorSyntaxError):
            compile_program(PREFIX + "v = ex:l[(@en)/.] ;")

    @pytest.mark.parametrize("test", [
        NotTest(AndTest(LanguageTest("en"), LanguageTest("en"))),
        NotTest(OrTest(LanguageTest("en"), LanguageTest("de"))),
        AndTest(OrTest(LanguageTest("en"), LanguageTest("de")), NotTest(LanguageTest("en"))),
        OrTest(LanguageTest("none"), AndTest(LanguageTest("de"), NotTest(LanguageTest("en")))),
        PathTest(IntersectionSelector(SelfSelector(), SelfSelector())),
    ])
    def test_rendered_tests_compile_back(self, label_graph, test):
        selector = FilteredSelector(PropertySelector(URIRef(EX + "l")), test)
        program = Program(fields=(FieldRule("v", selector),))
        recompiled = compile_program(program.to_ldpath())
        assert (
            recompiled.execute(label_graph).to_python()
            == program.execute(label_graph).to_python()
        )

    def test_negated_and_renders_group(self):
        test = NotTest(AndTest(LanguageTest("en"), LanguageTest("en")))
        assert test.to_ldpath() == "!(@en & @en)"


class TestReplaceErrors:

    def test_invalid_pattern_from_graph(self):
        r = URIRef(EX + "r")
        graph = GraphSource.from_triples([
            (r, URIRef(EX + "t"), Literal("abc")),
            (r, URIRef(EX + "pat"), Literal("(")),
        ], r)
        program = compile_program(PREFIX + 'v = fn:replace(ex:t, ex:pat, "y") ;')
        with pytest.raises(TraversalError) as exc_info:
            program.execute(graph)
        assert exc_info.value.fragment == "("

    def test_invalid_pattern_is_captured_by_try_apply(self):
        r = URIRef(EX + "r")
        graph = GraphSource.from_triples([
            (r, URIRef(EX + "t"), Literal("abc")),
            (r, URIRef(EX + "pat"), Literal("[a")),
        ], r)
        transform = LDPathTransform(PREFIX + 'v = fn:replace(ex:t, ex:pat, "y") ;')
        outcome = transform.try_apply(graph)
        assert outcome.is_err()
        assert isinstance(outcome.error, TraversalError)


class TestNodeTests:
    """Filters inside [...] and program-level @filter."""

    def test_language(self, report_graph):
        assert values(report_graph, "ex:label[@en]") == ["Hello"]

    def test_language_or(self, report_graph):
        assert values(report_graph, "ex:label[@en | @de]") == ["Hallo", "Hello"]

    def test_datatype(self, report_graph):
        assert values(report_graph, "ex:pages[^^xsd:int]") == [42]

    def test_plain_literal_is_string_typed(self, report_graph):
        assert values(report_graph, "dc:title[^^xsd:string]") == ["Report"]

    def test_is_a(self, report_graph):
        assert values(report_graph, "^dcterms:isPartOf[is-a ex:Chapter]") == [EX + "c1"]

    def test_path_value(self, report_graph):
        assert values(report_graph, '^dcterms:isPartOf[dc:title is "Notes"]') == [EX + "c2"]

    def test_value(self, report_graph):
        assert values(report_graph, 'dc:description[is "A"]') == ["A"]

    def test_not(self, report_graph):
        assert values(report_graph, 'dc:description[!is "A"]') == ["B"]

    def test_and_with_path_test(self, report_graph):
        selector = "^dcterms:isPartOf[is-a ex:Appendix & dc:title]"
        assert values(report_graph, selector) == [EX + "c2"]

    def test_numeric_value(self, report_graph):
        assert values(report_graph, "ex:pages[. is 42]") == [42]

    def test_filter_rejecting_root_gives_empty_fields(self, report_graph):
        result = run(report_graph, "@filter is-a ex:Memo ;\ntitle = dc:title ;")
        assert result == {"title": []}

    def test_filter_accepting_root(self, report_graph):
        result = run(report_graph, "@filter is-a ex:Report ;\ntitle = dc:title ;")
        assert result == {"title": ["Report"]}


class TestFunctions:
    """Built-in fn: functions and reducer lifting."""

    def test_count_is_lifted_to_reducer(self, report_graph):
        program = compile_program("n = fn:count(dc:description) :: xsd:int ;")
        rule = program.get_field("n")
        assert rule.reducer is not None
        assert rule.reducer.name == "count"
        assert isinstance(rule.selector, PropertySelector)
        assert program.execute(report_graph).to_python() == {"n": [2]}

    def test_first_and_last(self, report_graph):
        assert values(report_graph, "fn:first(dc:description)") == ["A"]
        assert values(report_graph, "fn:last(dc:description)") == ["B"]

    def test_count_of_nothing(self, report_graph):
        assert values(report_graph, "fn:count(ex:nothing)") == [0]

    def test_concat_multiple_arguments_stays_a_function(self, report_graph):
        program = compile_program('v = fn:concat(dc:title, "-", dc:description) ;')
        rule = program.get_field("v")
        assert rule.reducer is None
        assert isinstance(rule.selector, FunctionSelector)
        assert program.execute(report_graph).to_python() == {"v": ["Report-AB"]}

    def test_concat_of_nothing(self, report_graph):
        assert values(report_graph, "fn:concat(ex:nothing)") == []

    def test_upper_lower_trim(self, report_graph):
        assert values(report_graph, "fn:upper(dc:title)") == ["REPORT"]
        assert values(report_graph, "fn:lower(dc:title)") == ["report"]
        assert values(report_graph, 'fn:trim("  x ")') == ["x"]

    def test_upper_keeps_language(self, report_graph):
        program = compile_program(PREFIX + "v = fn:upper(ex:label[@en]) ;")
        assert program.execute(report_graph)["v"] == [Literal("HELLO", lang="en")]

    def test_strlen(self, report_graph):
        assert values(report_graph, "fn:strlen(dc:title)") == [6]

    def test_replace(self, report_graph):
        assert values(report_graph, 'fn:replace(dc:title, "o", "0")') == ["Rep0rt"]

    def test_sort(self, report_graph):
        assert values(report_graph, "fn:sort(dc:title | dc:description)") == ["A", "B", "Report"]

    def test_nested_function(self, report_graph):
        assert values(report_graph, "fn:count(fn:upper(dc:description))") == [2]


class TestFieldTypes:
    """:: type conversion of extracted values."""

    def test_string(self, report_graph):
        assert values(report_graph, "ex:pages :: xsd:string") == ["42"]

    def test_iri_as_string(self, report_graph):
        assert values(report_graph, ". :: xsd:string") == [EX + "r1"]

    def test_boolean_drops_invalid_values(self, report_graph):
        assert values(report_graph, "ex:flag :: xsd:boolean") == [True]

    def test_int_drops_invalid_values(self, report_graph):
        assert values(report_graph, "dc:description :: xsd:int") == []

    def test_datetime(self, report_graph):
        assert values(report_graph, "ex:created :: xsd:dateTime") == [
            datetime(2024, 1, 2, 3, 4, 5)
        ]

    def test_any_uri_rejects_literals(self, report_graph):
        assert values(report_graph, "(dc:creator | dc:title) :: xsd:anyURI") == [EX + "alice"]


class TestCompileErrors:
    """Parse-time failures raise the matching exception."""

    def test_empty_source(self):
        with pytest.raises(EmptyProgramError):
            compile_program("")

    def test_only_comments(self):
        with pytest.raises(EmptyProgramError):
            compile_program("/* nothing here */")

    def test_only_prefixes(self):
        with pytest.raises(EmptyProgramError):
            compile_program(PREFIX)

    def test_duplicate_field(self):
        with pytest.raises(DuplicateFieldError) as exc_info:
            compile_program("t = dc:title ;\nt = dc:description ;")
        assert exc_info.value.field_name == "t"
        assert exc_info.value.line == 2
        assert exc_info.value.fragment == "t = dc:description ;"

    def test_unknown_function(self):
        with pytest.raises(UnknownSelectorFunction) as exc_info:
            compile_program("t = fn:nope(dc:title) ;")
        assert exc_info.value.function == "fn:nope"

    def test_syntax_error(self):
        with pytest.raises(SelectorSyntaxError) as exc_info:
            compile_program("title = dc:title")
        assert exc_info.value.line == 1

    def test_undefined_prefix(self):
        with pytest.raises(SelectorSyntaxError, match="Undefined prefix 'nope'"):
            compile_program("t = nope:title ;")

    def test_unknown_type(self):
        with pytest.raises(ProgramParseError) as exc_info:
            compile_program("t = dc:title :: xsd:gYear ;")
        assert not isinstance(exc_info.value, SelectorSyntaxError)

    def test_arity(self):
        with pytest.raises(ProgramParseError, match="expects 1"):
            compile_program("t = fn:upper(dc:title, dc:description) ;")

    def test_all_are_program_parse_errors(self):
        for source in ("", "t = dc:title ; t = dc:title ;", "t = fn:nope(.) ;", "t ="):
            with pytest.raises(ProgramParseError):
                compile_program(source)


class TestEvaluationErrors:
    """Failures only detectable on hand-built programs."""

    def test_unbound_function(self, report_graph):
        rule = FieldRule("v", FunctionSelector("http://example.org/fn", (PropertySelector(URIRef(EX + "p")),)))
        program = Program(fields=(rule,))
        with pytest.raises(UnknownSelectorFunction):
            program.execute(report_graph)

    def test_literal_predicate(self, report_graph):
        program = Program(fields=(FieldRule("v", PropertySelector(Literal("p"))),))
        with pytest.raises(TraversalError):
            program.execute(report_graph)


class TestProgramProperties:
    """Determinism and rendering."""

    SOURCE = (
        PREFIX
        + "@filter is-a ex:Report ;\n"
        + "title = dc:title :: xsd:string ;\n"
        + "parts = (dcterms:hasPart){1,2} ;\n"
        + "chapters = ^dcterms:isPartOf[is-a ex:Chapter & dc:title] ;\n"
        + 'named = ^dcterms:isPartOf[dc:title is "Notes"] ;\n'
        + "n = fn:count(dc:description | ex:summary) :: xsd:int ;\n"
        + 'label = (ex:label[@en] | "none") ;\n'
        + "pages = ex:pages[. is 42] ;\n"
        + "langs = ex:label[!(@en | @none) & (@de | @en)] ;\n"
    )

    def test_apply_twice_gives_identical_results(self, report_graph):
        program = compile_program(self.SOURCE)
        first = program.execute(report_graph).to_python()
        second = program.execute(report_graph).to_python()
        assert first == second

    def test_to_ldpath_round_trip(self, report_graph):
        program = compile_program(self.SOURCE)
        recompiled = compile_program(program.to_ldpath())
        assert recompiled.field_names == program.field_names
        assert "!(@en | @none) & (@de | @en)" in program.to_ldpath()
        assert program.execute(report_graph)["langs"] == [Literal("Hallo", lang="de")]
        assert (
            recompiled.execute(report_graph).to_python()
            == program.execute(report_graph).to_python()
        )

    def test_field_names(self):
        program = compile_program(self.SOURCE)
        assert program.field_names == [
            "title", "parts", "chapters", "named", "n", "label", "pages", "langs",
        ]
        assert program.get_field("missing") is None

    def test_program_is_hashable(self):
        program = compile_program("t = dc:title ;")
        assert hash(program.fields) == hash(compile_program("t = dc:title ;").fields)

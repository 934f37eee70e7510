from __future__ import annotations

import pytest

from swagify.csharp.expressions import decode_string, parse_arguments, parse_expression
from swagify.csharp.tokenizer import tokenize
from swagify.extractor import find_payload_type
from swagify.syntax import NodeKind


def parse(source):
    return parse_expression(source, tokenize(source))


def arguments(source):
    return parse_arguments(source, tokenize(source), attribute_mode=True)


def test_helper_invocation_with_payload():
    node = parse("Ok(new UserDto(user))")
    assert node.kind is NodeKind.INVOCATION
    assert node.name == "Ok"
    assert node.arguments[0].kind is NodeKind.OBJECT_CREATION
    assert node.arguments[0].name == "UserDto"
    assert node.text == "Ok(new UserDto(user))"


def test_generic_helper_invocation_is_named_by_method():
    node = parse("Ok<UserDto>(dto)")
    assert node.kind is NodeKind.INVOCATION
    assert node.name == "Ok"


@pytest.mark.parametrize("source, name", [
    ("this.NotFound()", "NotFound"),
    ("base.Ok(user)", "Ok"),
    ("_results.Ok()", "_results.Ok"),
    ("Results.Json(user)", "Results.Json"),
])
def test_member_invocation_names(source, name):
    assert parse(source).name == name


def test_qualified_and_generic_creation_names():
    assert parse("new Billing.InvoiceDto(x)").name == "Billing.InvoiceDto"
    assert parse("new Dictionary<string, List<int>>()").name == "Dictionary<string, List<int>>"
    assert parse("new global::Api.UserDto()").name == "global::Api.UserDto"


def test_creation_with_initializer():
    node = parse('new ProfileDto { Name = User.Identity.Name, Tags = { "a" } }')
    assert node.kind is NodeKind.OBJECT_CREATION
    assert node.name == "ProfileDto"


@pytest.mark.parametrize("source", [
    "new { Id = 1 }",
    "new[] { 1, 2 }",
    "new int[3]",
    "new UserDto[] { }",
    "new(1, 2)",
])
def test_non_object_creations(source):
    node = parse(source)
    assert node.kind is NodeKind.OTHER
    assert find_payload_type(node) is None


def test_array_elements_are_still_searched():
    assert find_payload_type(parse("new[] { new UserDto(a), new UserDto(b) }")) == "UserDto"


def test_cast_is_unwrapped():
    node = parse("(int)HttpStatusCode.NotFound")
    assert node.kind is NodeKind.CAST
    assert node.name == "int"
    inner = node.unwrap()
    assert inner.kind is NodeKind.MEMBER_ACCESS
    assert inner.name == "NotFound"


def test_parenthesized_is_not_a_cast():
    node = parse("(user)")
    assert node.kind is NodeKind.PARENTHESIZED
    assert node.unwrap().kind is NodeKind.IDENTIFIER


def test_parenthesized_call_is_not_a_cast():
    assert parse("(Ok)(user)").kind is NodeKind.INVOCATION


@pytest.mark.parametrize("source, expected", [
    ("items.Select(x => new ItemDto(x))", "ItemDto"),
    ("user ?? new UserDto()", "UserDto"),
    ("flag ? new A() : new B()", "A"),
    ("kind switch { 1 => new A(), _ => new B() }", "A"),
    ("await _users.CreateAsync(new CreateUser(name))", "CreateUser"),
    ("Ok((object)new UserDto())", "UserDto"),
    ('Created($"/users/{id}", new UserDto(id) with { Name = "x" })', "UserDto"),
    ("Ok(users.Where(u => u is AdminDto { Active: true }).Select(u => new UserDto(u)))", "UserDto"),
])
def test_payload_search_sees_through_expressions(source, expected):
    assert find_payload_type(parse(source)) == expected


def test_await_invocation_is_not_a_helper_call():
    node = parse("await _users.GetAsync(id)")
    assert node.kind is NodeKind.OTHER
    assert node.children[0].kind is NodeKind.INVOCATION


def test_block_lambda_body_is_searched():
    node = parse("Run(() => { Log(); return new Hidden(); })")
    assert node.arguments[0].kind is NodeKind.LAMBDA
    assert find_payload_type(node) == "Hidden"


def test_anonymous_method_body_is_searched():
    node = parse("Ok(items.Select(delegate (Item x) { return new ItemDto(x, new Tag()); }))")
    assert node.arguments[0].arguments[0].kind is NodeKind.LAMBDA
    assert find_payload_type(node) == "ItemDto"


def test_typeof_names():
    assert parse("typeof(UserDto)").name == "UserDto"
    assert parse("typeof(List<UserDto>)").name == "List<UserDto>"
    assert parse("typeof(int[])").name == "int[]"


def test_literals():
    assert parse('"Found"').name == "Found"
    assert parse('$"User {id}"').name is None
    assert parse("null").name == "null"
    assert parse("404").kind is NodeKind.LITERAL


def test_attribute_arguments_positional_and_named():
    args = arguments('HttpStatusCode.OK, "Found", typeof(UserDto), ContentTypes = new[] { "a" }')
    assert [a.kind for a in args] == [
        NodeKind.MEMBER_ACCESS, NodeKind.LITERAL, NodeKind.TYPEOF, NodeKind.NAMED_ARGUMENT,
    ]
    assert args[3].name == "ContentTypes"
    assert args[3].text == 'ContentTypes = new[] { "a" }'


def test_colon_named_argument_unwraps_to_value():
    args = arguments('statusCode: HttpStatusCode.Created, description: "Made"')
    assert args[0].kind is NodeKind.NAMED_ARGUMENT
    assert args[0].unwrap().name == "Created"


def test_unknown_tokens_do_not_abort():
    node = parse("Ok(new UserDto()) ; ;")
    assert node is not None
    assert find_payload_type(node) == "UserDto"


def test_empty_expression():
    assert parse_expression("", []) is None


@pytest.mark.parametrize("literal, value", [
    (r'"a\"b\n"', 'a"b\n'),
    (r'"\u0041\x42"', "AB"),
    (r'@"c:\x"""', 'c:\\x"'),
    ('"""raw "text" """', 'raw "text" '),
    (r'$"Hi {name}"', None),
    (r'@$"Hi {name}"', None),
])
def test_decode_string(literal, value):
    assert decode_string(literal) == value

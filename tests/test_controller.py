from __future__ import annotations

import pytest

from swagify.base import SourceParseError
from swagify.csharp import parse_controller
from swagify.syntax import NodeKind


def method(methods, name):
    return next(m for m in methods if m.name == name)


class TestUsersSample:

    @pytest.fixture
    def methods(self, users_source):
        return parse_controller(users_source)

    def test_finds_block_bodied_actions_only(self, methods):
        # Constructor, property and expression-bodied Ping are not handlers
        assert [m.name for m in methods] == ["GetUser", "CreateUser", "DeleteUser", "ArchiveUser", "GetProfile"]

    def test_method_line_is_the_name_line(self, methods):
        assert method(methods, "GetUser").line == 22

    def test_attribute_lists(self, methods):
        get_user = method(methods, "GetUser")
        assert [a.name for a in get_user.annotations] == ["HttpGet", "SwaggerResponse"]

        swagger = get_user.annotations[1]
        assert [a.kind for a in swagger.arguments] == [NodeKind.MEMBER_ACCESS, NodeKind.LITERAL, NodeKind.TYPEOF]
        assert swagger.arguments[2].name == "LegacyDto"

    def test_annotation_span_covers_brackets(self, methods, users_source):
        swagger = method(methods, "GetUser").annotations[1]
        start, end = swagger.span
        assert users_source[start:end] == '[SwaggerResponse(HttpStatusCode.OK, "The user", typeof(LegacyDto))]'

    def test_nested_returns_are_not_top_level(self, methods):
        get_user = method(methods, "GetUser")
        assert [r.expression.name for r in get_user.returns] == ["Ok"]

        archive = method(methods, "ArchiveUser")
        assert [r.text for r in archive.returns] == ["return Conflict();"]

    def test_this_qualified_helper(self, methods):
        (statement,) = method(methods, "GetProfile").returns
        assert statement.expression.name == "Ok"
        assert statement.expression.arguments[0].name == "ProfileDto"

    def test_offsets_and_indent(self, methods, users_source):
        delete = method(methods, "DeleteUser")
        assert users_source[delete.declaration_start:].startswith('[HttpDelete("{id}")]')
        assert users_source[delete.body_start] == "{"
        assert delete.indent == " " * 8
        assert users_source[:delete.declaration_start].endswith("\n" + delete.indent)

    def test_contains_covers_the_header_only(self, methods, users_source):
        delete = method(methods, "DeleteUser")
        assert delete.contains(users_source.index("DeleteUser"))
        assert delete.contains(delete.declaration_start)
        assert not delete.contains(users_source.index("_users.Delete(id)"))


def test_file_scoped_namespace_and_generic_return_types(orders_source):
    methods = parse_controller(orders_source)
    assert [m.name for m in methods] == ["ListOrders", "GetInvoice", "Brew"]
    assert method(methods, "ListOrders").returns[0].expression.arguments[0].name == "List<OrderDto>"


def test_generic_method_with_constraints():
    source = """
class C {
    public IActionResult Find<T>(T id) where T : struct
    {
        return Ok();
    }
}
"""
    (found,) = parse_controller(source)
    assert found.name == "Find"
    assert len(found.returns) == 1


def test_tuple_return_type_and_chained_constructor():
    source = """
class C {
    public C(int x) : base(x) { }

    public (bool, string) Pair()
    {
        return (true, "x");
    }
}
"""
    (found,) = parse_controller(source)
    assert found.name == "Pair"
    assert len(found.returns) == 1


def test_local_functions_and_lambdas_do_not_leak_returns():
    source = """
class C {
    public IActionResult Act()
    {
        IActionResult Inner() { return NotFound(); }
        var items = list.Select(x => { return new Dto(x); });
        switch (kind)
        {
            case 1:
                return BadRequest();
        }
        using (var scope = Begin())
        {
            return Conflict();
        }
        return Ok(items);
    }
}
"""
    (act,) = parse_controller(source)
    assert [r.expression.name for r in act.returns] == ["Ok"]


def test_return_after_block_statement_is_top_level():
    source = """
class C {
    public IActionResult Act()
    {
        try { Work(); } finally { Done(); }
        return Ok();
    }
}
"""
    (act,) = parse_controller(source)
    assert len(act.returns) == 1


def test_nested_types_and_interfaces():
    source = """
namespace A.B
{
    public interface IApi
    {
        IActionResult Get();
    }

    public partial class OuterController
    {
        private class Inner
        {
            public string Describe() { return "inner"; }
        }

        public static OuterController operator +(OuterController a, OuterController b) { return a; }
        public static implicit operator string(OuterController c) { return ""; }

        public IActionResult Get() { return Ok(); }
    }
}
"""
    assert [m.name for m in parse_controller(source)] == ["Describe", "Get"]


def test_attribute_target_and_trailing_attributes():
    source = """
class C {
    [return: SwaggerResponse(HttpStatusCode.OK, "Fine"), Obsolete("old")]
    [HttpGet]
    public IActionResult Get() { return Ok(); }
}
"""
    (get,) = parse_controller(source)
    first, second = get.annotations
    assert first.target == "return"
    assert first.name == "SwaggerResponse"
    assert first.trailing == ('Obsolete("old")',)
    assert second.name == "HttpGet"
    assert second.arguments == ()


def test_qualified_attribute_name_is_kept_whole():
    source = """
class C {
    [Swashbuckle.AspNetCore.Annotations.SwaggerResponse(HttpStatusCode.OK)]
    public IActionResult Get() { return Ok(); }
}
"""
    (get,) = parse_controller(source)
    assert get.annotations[0].name == "Swashbuckle.AspNetCore.Annotations.SwaggerResponse"


def test_methods_outside_types_are_ignored():
    source = """
var app = builder.Build();
app.MapGet("/", () => { return Results.Ok(); });
IResult Local() { return Results.Ok(); }
"""
    assert parse_controller(source) == []


def test_unterminated_literal_is_a_parse_error():
    with pytest.raises(SourceParseError):
        parse_controller('class C { public string Get() { return "oops; } }')

"""Small Spring-style projects shared by the graph, tracer and pipeline tests."""

from __future__ import annotations

from tests.factories import ann, call, controller, index_of, interface, method, type_decl


def auth_project():
    """A controller reaching a constant through a service."""
    constants = type_decl("AuthConstants", fields={"TOKEN_KEY": "String"})
    service = type_decl(
        "AuthService",
        method("AuthService", "authenticate", accesses=[("AuthConstants", "TOKEN_KEY")], names=["AuthConstants"]),
    )
    ctrl = controller(
        "AuthController",
        method(
            "AuthController",
            "login",
            annotations_=[ann("PostMapping", "/login")],
            calls=[call("authenticate", "authService")],
            names=["authService"],
        ),
        path="/auth",
        fields={"authService": "AuthService"},
    )
    return index_of(constants, service, ctrl)


def user_project():
    """A controller whose mapping is declared on the interface it implements."""
    mapper = interface("UserMapper", method("UserMapper", "selectAll", abstract=True))
    service = type_decl(
        "UserService",
        method("UserService", "findAll", calls=[call("selectAll", "userMapper")], names=["userMapper"]),
        fields={"userMapper": "UserMapper"},
    )
    api = interface(
        "UserApi",
        method("UserApi", "list", annotations_=[ann("GetMapping", "/list")], abstract=True),
        annotations_=[ann("RequestMapping", "/api")],
    )
    ctrl = type_decl(
        "UserController",
        method("UserController", "list", calls=[call("findAll", "userService")], names=["userService"]),
        implements=["UserApi"],
        fields={"userService": "UserService"},
    )
    return index_of(mapper, service, api, ctrl)


def cyclic_project():
    """``A#a`` and ``B#b`` call each other; ``C#c`` is the only way out."""
    a = type_decl("A", method("A", "a", calls=[call("b", "B"), call("selectAll", "UserMapper")]))
    b = type_decl("B", method("B", "b", calls=[call("a", "A")]))
    c = controller("C", method("C", "c", annotations_=[ann("GetMapping", "/c")], calls=[call("a", "A")]))
    return index_of(a, b, c)

"""Read-only documentation tables for hover and completion."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, NamedTuple


class DocEntry(NamedTuple):
    summary: str
    markdown: str


STATUS_CODES: Mapping[int, DocEntry] = MappingProxyType(
    {
        200: DocEntry(
            "OK",
            "**200 OK**\n\nThe request succeeded. The response body carries the "
            "requested resource or the result of the action.",
        ),
        201: DocEntry(
            "Created",
            "**201 Created**\n\nThe request succeeded and a new resource was created. "
            "Typically returned from `POST` handlers, often with a `Location` header.",
        ),
        204: DocEntry(
            "No Content",
            "**204 No Content**\n\nThe request succeeded and there is no body to "
            "send. Common for `DELETE` and idempotent `PUT` handlers; use `()` as the "
            "response type.",
        ),
        400: DocEntry(
            "Bad Request",
            "**400 Bad Request**\n\nThe server cannot process the request because of "
            "a client error such as malformed syntax or invalid input.",
        ),
        401: DocEntry(
            "Unauthorized",
            "**401 Unauthorized**\n\nThe request lacks valid authentication "
            "credentials for the target resource.",
        ),
        403: DocEntry(
            "Forbidden",
            "**403 Forbidden**\n\nThe client is authenticated but does not have "
            "permission to access the resource.",
        ),
        404: DocEntry(
            "Not Found",
            "**404 Not Found**\n\nThe server cannot find the requested resource.",
        ),
        409: DocEntry(
            "Conflict",
            "**409 Conflict**\n\nThe request conflicts with the current state of the "
            "resource, for example a duplicate unique key.",
        ),
        422: DocEntry(
            "Unprocessable Entity",
            "**422 Unprocessable Entity**\n\nThe request is well-formed but contains "
            "semantic errors, such as failed validation.",
        ),
        500: DocEntry(
            "Internal Server Error",
            "**500 Internal Server Error**\n\nThe server encountered an unexpected "
            "condition that prevented it from fulfilling the request.",
        ),
        503: DocEntry(
            "Service Unavailable",
            "**503 Service Unavailable**\n\nThe server is not ready to handle the "
            "request, usually because it is overloaded or down for maintenance.",
        ),
    }
)

_STATUS_CLASSES = (
    (100, 199, "Informational", "Indicates that the request was received and is being processed."),
    (200, 299, "Success", "Indicates that the request was successfully received, understood, and accepted."),
    (300, 399, "Redirection", "Indicates that further action needs to be taken to complete the request."),
    (400, 499, "Client Error", "Indicates that the client seems to have made an error."),
    (500, 599, "Server Error", "Indicates that the server failed to fulfill an apparently valid request."),
)

SECURITY_SCHEMES: Mapping[str, DocEntry] = MappingProxyType(
    {
        "bearer": DocEntry(
            "Bearer token authentication",
            "**Bearer Authentication**\n\n\"Bearer\" means **whoever holds (bears) this "
            "token gets access**.\n\nThe token is passed in the `Authorization` header:\n"
            "```\nAuthorization: Bearer <token>\n```\n\n"
            "Session IDs, JWTs and OAuth access tokens can all travel this way; bearer "
            "describes how the token is sent, not what it contains.\n\n"
            "Always use HTTPS: bearer tokens are credentials.",
        ),
        "basic": DocEntry(
            "Basic HTTP authentication",
            "**Basic Authentication**\n\nSimple authentication scheme built into HTTP. "
            "Credentials are sent as:\n\n```\nAuthorization: Basic <base64(username:password)>\n```\n\n"
            "**Security note**: only use it over HTTPS, credentials are merely base64 "
            "encoded.",
        ),
        "apiKey": DocEntry(
            "API key in header, query or cookie",
            "**API Key Authentication**\n\nAuthentication using an API key that can be "
            "sent in:\n- Header: `X-API-Key: <key>`\n- Query parameter: `?api_key=<key>`\n"
            "- Cookie\n\nCommon for public APIs and service-to-service calls.",
        ),
        "oauth2": DocEntry(
            "OAuth 2.0 authentication",
            "**OAuth 2.0**\n\nIndustry-standard protocol for authorization. Enables "
            "applications to obtain limited access to user accounts.\n\n"
            "**Common flows:**\n- Authorization Code: web and mobile apps\n"
            "- Client Credentials: service-to-service\n\n"
            "Access tokens carry scopes and an expiration.",
        ),
    }
)

ANNOTATIONS: Mapping[str, DocEntry] = MappingProxyType(
    {
        "@tag": DocEntry(
            "Group related endpoints together in the API documentation",
            "# @tag\n\nGroup related endpoints together in the API documentation.\n\n"
            "## Syntax\n```rust\n/// @tag NAME\n```\n\n"
            "## Example\n```rust\n/// # Metadata\n///\n/// @tag users\n#[rovo]\n"
            "async fn list_users() -> Json<Vec<User>> { ... }\n```\n\n"
            "A handler may carry several tags.",
        ),
        "@security": DocEntry(
            "Specify the security scheme required for this endpoint",
            "# @security\n\nSpecify the security scheme required for this endpoint.\n\n"
            "## Syntax\n```rust\n/// @security SCHEME\n```\n\n"
            "Common schemes:\n- `bearer`: Bearer token authentication\n"
            "- `basic`: Basic HTTP authentication\n"
            "- `apiKey`: API key in header/query/cookie\n"
            "- `oauth2`: OAuth 2.0 authentication",
        ),
        "@id": DocEntry(
            "Set a custom operation ID for this endpoint",
            "# @id\n\nSet a custom operation ID for this endpoint.\n\n"
            "## Syntax\n```rust\n/// @id OPERATION_ID\n```\n\n"
            "Operation IDs may only contain letters, digits and underscores. They name "
            "the operation in generated client SDKs and documentation links.",
        ),
        "@hidden": DocEntry(
            "Hide this endpoint from the generated API documentation",
            "# @hidden\n\nHide this endpoint from the generated API documentation.\n\n"
            "## Syntax\n```rust\n/// @hidden\n```\n\n"
            "Useful for internal or debug endpoints.",
        ),
        "@rovo-ignore": DocEntry(
            "Stop processing annotations below this line",
            "# @rovo-ignore\n\nEverything after this line is left alone: no further "
            "annotations are parsed and no errors are reported for it.\n\n"
            "## Syntax\n```rust\n/// @rovo-ignore\n```",
        ),
    }
)

SECTIONS: Mapping[str, DocEntry] = MappingProxyType(
    {
        "# Responses": DocEntry(
            "Document the responses of this endpoint",
            "# Responses\n\nOne line per status code:\n\n"
            "```rust\n/// 200: Json<User> - User found\n/// 404: () - User not found\n```\n\n"
            "Lines that do not start with a status code continue the previous "
            "description.",
        ),
        "# Examples": DocEntry(
            "Provide example values for documented responses",
            "# Examples\n\nOne example per status code, either inline or spanning "
            "several lines until its brackets balance:\n\n"
            "```rust\n/// 200: User { id: 1, name: \"Alice\".into() }\n```\n\n"
            "A fenced code block after `STATUS:` is taken verbatim. Every example "
            "status code must also appear under `# Responses`.",
        ),
        "# Metadata": DocEntry(
            "Tags, security, operation ID and visibility",
            "# Metadata\n\nAnnotations describing the operation:\n\n"
            "- `@tag NAME`\n- `@security SCHEME`\n- `@id OPERATION_ID`\n- `@hidden`\n"
            "- `@rovo-ignore`",
        ),
        "# Path Parameters": DocEntry(
            "Describe the bindings of the path extractor",
            "# Path Parameters\n\nOne line per binding of the handler's `Path(...)` "
            "extractor:\n\n```rust\n/// id: The user identifier\n```\n\n"
            "Names must match the bindings in the signature unless the extractor "
            "destructures a struct.",
        ),
    }
)

COMMON_STATUS_CODES: tuple[int, ...] = tuple(STATUS_CODES)


def status_code_info(code: int) -> str:
    entry = STATUS_CODES.get(code)
    if entry is not None:
        return entry.markdown
    for low, high, label, text in _STATUS_CLASSES:
        if low <= code <= high:
            return f"**{code} {label}**\n\n{text}"
    return f"**{code}**\n\nUnknown status code."


def status_code_summary(code: int) -> str:
    entry = STATUS_CODES.get(code)
    if entry is not None:
        return entry.summary
    for low, high, label, _text in _STATUS_CLASSES:
        if low <= code <= high:
            return label
    return "Unknown"


def annotation_documentation(name: str) -> str | None:
    entry = ANNOTATIONS.get(name)
    return entry.markdown if entry is not None else None


def section_documentation(header: str) -> str | None:
    entry = SECTIONS.get(header)
    return entry.markdown if entry is not None else None

"""
Per-slot extraction catalog.

Keyword sets, backend prompt templates, default titles and the mock
title/description synthesis for every architecture component type.
Keyword sets are pairwise disjoint. Where one slot's keyword sits inside
another slot's phrase ("firewall" in "web application firewall"), the
engine masks the longer phrase before matching the shorter keyword.
"""

from collections.abc import Callable

from flowscribe.models.base import COMPONENT_TYPES, ArchitectureComponentType as T

COMPONENT_KEYWORDS: dict[T, tuple[str, ...]] = {
    T.USER_ACTION: (
        "user", "click", "submit", "press", "enter", "select",
        "action", "trigger", "button", "form",
    ),
    T.CLIENT_CODE: (
        "frontend", "client", "react", "vue", "angular", "javascript",
        "typescript", "browser", "ajax", "fetch",
    ),
    T.FIREWALL: (
        "firewall", "network security", "port", "iptables",
        "security group", "inbound", "outbound",
    ),
    T.WAF: (
        "waf", "web application firewall", "cloudflare", "aws waf",
        "security rule", "owasp",
    ),
    T.LOAD_BALANCER: (
        "load balancer", "nginx", "haproxy", "elb", "alb",
        "round robin", "scaling",
    ),
    T.API_GATEWAY: (
        "api gateway", "kong", "apigee", "gateway", "routing",
        "rate limit", "throttle",
    ),
    T.API_ENDPOINT: (
        "endpoint", "api", "rest", "graphql", "http", "post",
        "get", "put", "delete", "route", "url",
    ),
    T.BACKEND_LOGIC: (
        "service", "business logic", "validate", "process",
        "transform", "controller", "backend",
    ),
    T.DATABASE: (
        "database", "db", "sql", "mongodb", "postgres", "mysql",
        "query", "insert", "table", "persist",
    ),
    T.EVENT_HANDLER: (
        "event", "queue", "kafka", "rabbitmq", "pub/sub", "async",
        "message", "handler", "listener", "webhook",
    ),
    T.VIEW_UPDATE: (
        "render", "display", "update", "state", "ui", "component",
        "view", "refresh", "show", "redirect",
    ),
}

_JSON_INSTRUCTION = """
Respond in JSON format:
{{
  "title": "{name} title",
  "description": "{hint}",
  "sourceExcerpt": "Relevant quote from document"
}}"""


def _template(intro: str, questions: tuple[str, ...], name: str, hint: str) -> str:
    lines = [intro] + [f"- {q}" for q in questions]
    return "\n".join(lines) + "\n" + _JSON_INSTRUCTION.format(name=name, hint=hint)


PROMPT_TEMPLATES: dict[T, str] = {
    T.USER_ACTION: _template(
        "Extract user action details:",
        (
            "What action does the user perform?",
            "What triggers this action (button click, form submission, etc.)?",
            "What data does the user provide?",
        ),
        "User Action",
        "Detailed description of the user action",
    ),
    T.CLIENT_CODE: _template(
        "Extract client-side code details:",
        (
            "What client framework/library is used?",
            "What happens on the client when this operation is triggered?",
            "How is the request prepared?",
        ),
        "Client Code",
        "Description of client-side handling",
    ),
    T.FIREWALL: _template(
        "Extract firewall configuration details:",
        (
            "Is there a network firewall mentioned?",
            "What rules or filtering is applied?",
            "What ports or protocols are used?",
        ),
        "Firewall",
        "Description of firewall configuration",
    ),
    T.WAF: _template(
        "Extract Web Application Firewall details:",
        (
            "Is there a WAF mentioned?",
            "What security rules are applied?",
            "What attacks does it prevent?",
        ),
        "WAF",
        "Description of WAF configuration",
    ),
    T.LOAD_BALANCER: _template(
        "Extract load balancer details:",
        (
            "Is there a load balancer mentioned?",
            "What balancing algorithm is used?",
            "How many instances/servers are involved?",
        ),
        "Load Balancer",
        "Description of load balancing",
    ),
    T.API_GATEWAY: _template(
        "Extract API gateway details:",
        (
            "Is there an API gateway mentioned?",
            "What routing rules are applied?",
            "What authentication/authorization is handled here?",
        ),
        "API Gateway",
        "Description of API gateway",
    ),
    T.API_ENDPOINT: _template(
        "Extract API endpoint details:",
        (
            "What is the endpoint URL/path?",
            "What HTTP method is used?",
            "What parameters does it accept?",
        ),
        "API Endpoint",
        "Description of the API endpoint",
    ),
    T.BACKEND_LOGIC: _template(
        "Extract backend logic details:",
        (
            "What business logic is executed?",
            "What validations are performed?",
            "What processing steps occur?",
        ),
        "Backend Logic",
        "Description of backend processing",
    ),
    T.DATABASE: _template(
        "Extract database details:",
        (
            "What database is used?",
            "What data is read/written?",
            "What queries or operations are performed?",
        ),
        "Database",
        "Description of database operations",
    ),
    T.EVENT_HANDLER: _template(
        "Extract event handler details:",
        (
            "What events are triggered?",
            "What async processing occurs?",
            "What subscribers/handlers respond?",
        ),
        "Event Handler",
        "Description of event handling",
    ),
    T.VIEW_UPDATE: _template(
        "Extract view update details:",
        (
            "How is the UI updated after the response?",
            "What state changes occur?",
            "What visual feedback is provided?",
        ),
        "View Update",
        "Description of view updates",
    ),
}

DEFAULT_TITLES: dict[T, str] = {
    T.USER_ACTION: "User Action",
    T.CLIENT_CODE: "Client Code",
    T.FIREWALL: "Firewall",
    T.WAF: "WAF",
    T.LOAD_BALANCER: "Load Balancer",
    T.API_GATEWAY: "API Gateway",
    T.API_ENDPOINT: "API Endpoint",
    T.BACKEND_LOGIC: "Backend Logic",
    T.DATABASE: "Database",
    T.EVENT_HANDLER: "Event Handler",
    T.VIEW_UPDATE: "View Update",
}

# Title and description synthesis from the operation name
_MOCK_CONTENT: dict[T, tuple[Callable[[str], str], Callable[[str], str]]] = {
    T.USER_ACTION: (
        lambda op: f"User initiates {op}",
        lambda op: f"User triggers {op} through the interface",
    ),
    T.CLIENT_CODE: (
        lambda op: f"Client {op} handler",
        lambda op: f"Client-side code handles {op} request preparation",
    ),
    T.FIREWALL: (
        lambda op: "Network Firewall",
        lambda op: "Filters network traffic before reaching the application",
    ),
    T.WAF: (
        lambda op: "Web Application Firewall",
        lambda op: "Validates requests and prevents common web attacks",
    ),
    T.LOAD_BALANCER: (
        lambda op: "Load Balancer",
        lambda op: "Distributes incoming requests across available servers",
    ),
    T.API_GATEWAY: (
        lambda op: "API Gateway",
        lambda op: "Routes and authenticates API requests",
    ),
    T.API_ENDPOINT: (
        lambda op: f"{op} Endpoint",
        lambda op: f"API endpoint that processes {op}",
    ),
    T.BACKEND_LOGIC: (
        lambda op: f"{op} Service",
        lambda op: f"Business logic for the {op} operation",
    ),
    T.DATABASE: (
        lambda op: "Data Store",
        lambda op: f"Persists and retrieves {op} data",
    ),
    T.EVENT_HANDLER: (
        lambda op: "Event Processor",
        lambda op: f"Handles asynchronous events raised by {op}",
    ),
    T.VIEW_UPDATE: (
        lambda op: "UI Update Handler",
        lambda op: f"Updates the user interface with {op} results",
    ),
}


def mock_title(component_type: T, operation_name: str) -> str:
    return _MOCK_CONTENT[component_type][0](operation_name)


def mock_description(component_type: T, operation_name: str) -> str:
    return _MOCK_CONTENT[component_type][1](operation_name)


def _check_catalog() -> None:
    """Fail at import time if any table misses a component type."""
    tables = {
        "COMPONENT_KEYWORDS": COMPONENT_KEYWORDS,
        "PROMPT_TEMPLATES": PROMPT_TEMPLATES,
        "DEFAULT_TITLES": DEFAULT_TITLES,
        "_MOCK_CONTENT": _MOCK_CONTENT,
    }
    for name, table in tables.items():
        missing = set(COMPONENT_TYPES) - set(table)
        if missing:
            raise RuntimeError(f"{name} is missing entries for {sorted(t.value for t in missing)}")

    seen: dict[str, T] = {}
    for component_type, keywords in COMPONENT_KEYWORDS.items():
        for keyword in keywords:
            if keyword in seen:
                raise RuntimeError(
                    f"Keyword '{keyword}' shared by {seen[keyword].value} and {component_type.value}"
                )
            seen[keyword] = component_type


_check_catalog()

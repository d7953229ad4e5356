# mcp_registry.py
"""
Единый источник истины (Single Source of Truth) для инструментов сервера.
Чтобы объявить новый инструмент, достаточно добавить запись в TOOL_REGISTRY,
а его реализацию - в ToolDispatcher.
"""

SERVER_NAME = "mcp-clipboard"
SERVER_VERSION = "0.1.0"
SERVER_INSTRUCTIONS = (
    "A clipboard management server that allows copying text to the system clipboard"
)

CLIPBOARD_SET = "clipboard_set"
CLIPBOARD_GET = "clipboard_get"

TOOL_REGISTRY = {
    CLIPBOARD_SET: {
        "description": "Copy text to the system clipboard, replacing its previous contents.",
        "aliases": ["copy_to_clipboard"],
        "inputSchema": {
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "The text content to copy to the clipboard"
                }
            },
            "required": ["text"]
        },
    },
    CLIPBOARD_GET: {
        "description": "Return the text currently held in the system clipboard.",
        "aliases": [],
        "inputSchema": {"type": "object", "properties": {}},
    },
}

# Псевдоним -> каноническое имя (канонические имена тоже здесь)
TOOL_ALIASES = {name: name for name in TOOL_REGISTRY}
for _name, _entry in TOOL_REGISTRY.items():
    for _alias in _entry["aliases"]:
        TOOL_ALIASES[_alias] = _name


def resolve_tool_name(name):
    """Возвращает каноническое имя инструмента или None, если такого нет."""
    if not isinstance(name, str):
        return None
    return TOOL_ALIASES.get(name)


def list_tools():
    """Описания инструментов в формате ответа tools/list (алиасы тоже видны клиенту)."""
    tools = []
    for name, entry in TOOL_REGISTRY.items():
        for tool_name in [name] + entry["aliases"]:
            tools.append({
                "name": tool_name,
                "description": entry["description"],
                "inputSchema": entry["inputSchema"],
            })
    return tools

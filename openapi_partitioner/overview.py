"""
llms.txt overview rendering.
"""

from typing import Any, Dict, List


def _operation_lines(document: Dict[str, Any], extension: str) -> List[str]:
    # Imported here, core imports this module at load time
    from .core import get_operation_id, iter_operations

    lines = []
    for path, method, operation in iter_operations(document):
        operation_id = get_operation_id(operation, path, method)
        summary = operation.get('summary') if isinstance(operation, dict) else None
        verb = method.upper()
        lines.append(
            f"- **{verb} {path}** - {summary or f'{verb} {path}'} "
            f"([details](operations/{operation_id}.{extension}))"
        )
    return lines


def generate_llms_txt(document: Dict[str, Any], extension: str = 'yaml') -> str:
    """
    Render the llms.txt overview of a document.

    Args:
        document: Flattened OpenAPI document
        extension: Extension of the per-operation files the entries link to

    Returns:
        Markdown overview with API metadata and one line per operation
    """
    info = document.get('info') or {}
    contact = info.get('contact') or {}
    license_info = info.get('license') or {}
    servers = document.get('servers') or []

    content = f"# {info.get('title') or 'API'}\n\n"

    if info.get('description'):
        content += f"{info['description']}\n\n"

    if info.get('version'):
        content += f"**Version:** {info['version']}\n\n"

    if contact.get('name') or contact.get('email') or contact.get('url'):
        content += "**Contact:**"
        if contact.get('name'):
            content += f" {contact['name']}"
        if contact.get('email'):
            content += f" <{contact['email']}>"
        if contact.get('url'):
            content += f" ({contact['url']})"
        content += "\n\n"

    if license_info.get('name'):
        content += f"**License:** {license_info['name']}"
        if license_info.get('url'):
            content += f" ({license_info['url']})"
        content += "\n\n"

    if servers and isinstance(servers[0], dict) and servers[0].get('url'):
        content += f"**Base URL:** {servers[0]['url']}\n\n"

    content += "## Operations\n\n"
    for line in _operation_lines(document, extension):
        content += f"{line}\n"

    return content

"""Read and write one plugin parameter in a game's js/plugins.js."""

import json
import logging
import os
import re
import shutil
from typing import Optional

log = logging.getLogger(__name__)


class PluginsFileError(Exception):
    """plugins.js is missing, unreadable, or lacks the requested plugin."""


def find_plugins_file(project_dir: str) -> Optional[str]:
    """Locate js/plugins.js in the project."""
    candidates = [
        os.path.join(project_dir, "js", "plugins.js"),
        os.path.join(project_dir, "www", "js", "plugins.js"),
    ]
    for path in candidates:
        if os.path.isfile(path):
            return path
    return None


def load_plugins_js(path: str) -> list:
    """Parse plugins.js into a Python list of plugin dicts."""
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    # Greedy so nested ] inside JSON strings don't truncate the array
    m = re.search(r'var\s+\$plugins\s*=\s*(\[.*\])\s*;', content, re.DOTALL)
    if not m:
        m = re.search(r'(\[.*\])\s*;', content, re.DOTALL)
    if not m:
        return []
    return json.loads(m.group(1))


def write_plugins_js(path: str, plugins: list):
    """Write the plugin list back in the editor's one-plugin-per-line layout."""
    lines = [json.dumps(p, ensure_ascii=False, separators=(",", ":")) for p in plugins]
    with open(path, "w", encoding="utf-8") as f:
        f.write("// Generated by RPG Maker.\n")
        f.write("// Do not edit this file directly.\n")
        f.write("var $plugins =\n[\n" + ",\n".join(lines) + "\n];\n")


def backup_plugins_file(path: str) -> str:
    """Copy plugins.js → plugins_original.js if no backup exists."""
    backup = os.path.join(os.path.dirname(path),
                          os.path.basename(path).replace("plugins.", "plugins_original."))
    if not os.path.exists(backup):
        shutil.copy2(path, backup)
        log.info("Backed up %s", path)
    return backup


def _load_project_plugins(project_dir: str):
    path = find_plugins_file(project_dir)
    if not path:
        raise PluginsFileError(f"No js/plugins.js found in {project_dir}")
    try:
        plugins = load_plugins_js(path)
    except (json.JSONDecodeError, OSError) as exc:
        raise PluginsFileError(f"Failed to read {path}: {exc}") from exc
    return path, plugins


def _find_plugin(plugins: list, plugin_name: str) -> dict:
    for p in plugins:
        if isinstance(p, dict) and p.get("name") == plugin_name:
            return p
    raise PluginsFileError(f"Plugin {plugin_name!r} is not registered in plugins.js")


def read_plugin_parameter(project_dir: str, plugin_name: str, param_key: str) -> str:
    """Return a plugin parameter's raw string value ("" when unset)."""
    path, plugins = _load_project_plugins(project_dir)
    params = _find_plugin(plugins, plugin_name).get("parameters") or {}
    value = params.get(param_key, "")
    log.info("Read %s/%s from %s", plugin_name, param_key, path)
    return value if isinstance(value, str) else ""


def write_plugin_parameter(project_dir: str, plugin_name: str, param_key: str,
                           value: str) -> str:
    """Replace a plugin parameter value, backing up plugins.js first.

    Returns the path written.  Every other plugin entry is written back
    unchanged.
    """
    path, plugins = _load_project_plugins(project_dir)
    plugin = _find_plugin(plugins, plugin_name)
    if not isinstance(plugin.get("parameters"), dict):
        plugin["parameters"] = {}
    plugin["parameters"][param_key] = value

    backup_plugins_file(path)
    write_plugins_js(path, plugins)
    log.info("Wrote %s/%s to %s", plugin_name, param_key, path)
    return path

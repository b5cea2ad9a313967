"""Guard: no function-level `import cmd_workbench` inside src/.

A function-level `import cmd_workbench.x.y` shadows the module-level
`cmd_workbench` binding for the ENTIRE enclosing function, causing
UnboundLocalError on any `cmd_workbench.` reference that precedes the
import statement.

This file is named with `test_0_` so it runs first.
"""

import ast
import os


_SRC_ROOT = os.path.join(os.path.dirname(__file__), "..", "src", "cmd_workbench")


def _find_function_level_imports():
    """Walk all .py files and flag `import cmd_workbench.*` inside functions/methods."""
    violations = []
    for dirpath, _dirs, files in os.walk(_SRC_ROOT):
        for fname in files:
            if not fname.endswith(".py"):
                continue
            path = os.path.join(dirpath, fname)
            with open(path) as f:
                tree = ast.parse(f.read(), filename=path)

            rel = os.path.relpath(path, _SRC_ROOT)
            for node in ast.walk(tree):
                if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    continue
                for child in ast.walk(node):
                    if isinstance(child, ast.Import):
                        names = [alias.name for alias in child.names]
                    elif isinstance(child, ast.ImportFrom):
                        names = [child.module or ""]
                    else:
                        continue
                    for name in names:
                        if name.startswith("cmd_workbench"):
                            violations.append(f"{rel}:{child.lineno} function-level import of {name}")
    return violations


def test_no_function_level_cmd_workbench_imports():
    violations = _find_function_level_imports()
    assert violations == [], (
        "Function-level imports of cmd_workbench hide dependency edges and can "
        "shadow the module binding. Move these to module level:\n"
        + "\n".join(f"  {v}" for v in violations)
    )

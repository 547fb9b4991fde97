"""
Test Writer - render JUnit sources for concretized test cases
"""
import json
import re
from typing import Any, List, Optional

from ..core.models.test_case import TestCase


def java_identifier(text: str) -> str:
    """Turn an arbitrary name (e.g. '<init>') into a Java identifier"""
    ident = re.sub(r"\W", "_", text).strip("_") or "m"
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def _java_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "int" if -2**31 <= value < 2**31 else "long"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "String"
    return "Object"


def _java_literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value) if -2**31 <= value < 2**31 else f"{value}L"
    if isinstance(value, float):
        if value != value:
            return "Double.NaN"
        if value in (float("inf"), float("-inf")):
            return "Double.POSITIVE_INFINITY" if value > 0 else "Double.NEGATIVE_INFINITY"
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    # Structured values are handed over as their JSON text
    return json.dumps(json.dumps(value, sort_keys=True, default=repr))


class TestWriter:
    """
    Generate JUnit 4 source cho một TestCase

    Sources produced by the search engine are kept as they are, only the
    class name is aligned with the output file name. Otherwise a harness is
    rendered from the concrete inputs.
    """

    __test__ = False

    def __init__(self, no_runtime_dependency: bool = False):
        self.no_runtime_dependency = no_runtime_dependency

    def render(self, test_case: TestCase, class_name: str) -> str:
        if test_case.source:
            return self._rename_class(test_case.source, class_name)
        return self._render_harness(test_case, class_name)

    def _rename_class(self, source: str, class_name: str) -> str:
        return re.sub(r"(public\s+class\s+)\w+", rf"\g<1>{class_name}", source, count=1)

    def _render_harness(self, test_case: TestCase, class_name: str) -> str:
        target = test_case.target
        qualified = target.class_name.replace("/", ".")
        package: Optional[str] = qualified.rsplit(".", 1)[0] if "." in qualified else None
        simple = target.simple_class_name

        lines: List[str] = []
        if package:
            lines.append(f"package {package};")
            lines.append("")

        lines.append("import org.junit.Test;")
        if not self.no_runtime_dependency:
            lines.append("import org.junit.runner.RunWith;")
            lines.append("import org.evosuite.runtime.EvoRunner;")
            lines.append("import org.evosuite.runtime.EvoRunnerParameters;")
        lines.append("")

        if not self.no_runtime_dependency:
            lines.append("@RunWith(EvoRunner.class) @EvoRunnerParameters(mockJVMNonDeterminism = true, useVFS = true)")
        lines.append(f"public class {class_name} {{")
        lines.append("")
        lines.append("    @Test(timeout = 4000)")
        lines.append("    public void test0() throws Throwable {")
        lines.append(f"        // Target: {target}")
        lines.append(f"        // Path condition depth: {test_case.depth}")
        if test_case.path_condition is not None:
            for clause in test_case.path_condition.clauses:
                lines.append(f"        //   {clause.encoding}")

        for name, value in test_case.inputs.items():
            lines.append(f"        {_java_type(value)} {java_identifier(name)} = {_java_literal(value)};")

        args = ", ".join(java_identifier(name) for name in test_case.inputs)
        if target.name == "<init>":
            lines.append(f"        new {simple}({args});")
        else:
            lines.append(f"        {simple} target = new {simple}();")
            lines.append(f"        target.{java_identifier(target.name)}({args});")

        lines.append("    }")
        lines.append("}")
        return "\n".join(lines) + "\n"

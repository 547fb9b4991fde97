"""
EvoSuite Wrapper - process-backed search engine
"""
import hashlib
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.options import Options
from ..core.models.path_condition import PathCondition
from .base import SearchEngine


class EvoSuiteProcessEngine(SearchEngine):
    """
    Wrapper cho EvoSuite (search-based unit test generator)

    Workflow:
    1. Write the path condition to the job's wrapper directory
    2. Run EvoSuite with the path-condition criterion and the search budget
    3. Pick up the generated test source (and the inputs the evaluator
       recorded, when present) from the job's test directory
    """

    def __init__(self, options: Options, grace_seconds: int = 10, extra_args: Optional[List[str]] = None):
        """
        Initialize EvoSuite wrapper

        Args:
            options: Run configuration (paths, java home, runtime dependency mode)
            grace_seconds: Time allowed on top of the search budget for startup and output
            extra_args: Extra command line arguments for EvoSuite
        """
        self.logger = logging.getLogger(__name__)
        self.options = options
        self.grace_seconds = grace_seconds
        self.extra_args = extra_args or []

    def required_paths(self) -> List[Path]:
        return [self.options.evosuite_path, self.options.sushi_lib_path]

    def _project_classpath(self) -> str:
        entries = list(self.options.classes_path) + [self.options.sushi_lib_path]
        return os.pathsep.join(str(p) for p in entries)

    def build_command(self, path_condition: PathCondition, budget_seconds: int, pc_file: Path, test_dir: Path) -> List[str]:
        """Command line for one concretization attempt"""
        target = path_condition.target
        cmd = [
            self.options.java_command,
            "-jar", str(self.options.evosuite_path),
            "-class", target.class_name.replace("/", "."),
            "-projectCP", self._project_classpath(),
            "-criterion", "PATHCONDITION",
            f"-Dpath_condition={target.class_name},{target.descriptor},{target.name},{pc_file}",
            f"-Dsearch_budget={budget_seconds}",
            f"-Dtest_dir={test_dir}",
            "-Dinline=false",
            "-Dassertions=false",
            "-Djunit_suffix=_Test",
        ]
        if self.options.evosuite_no_dependency:
            cmd.append("-Dno_runtime_dependency=true")
        cmd.extend(self.extra_args)
        return cmd

    def solve(self, path_condition: PathCondition, budget_seconds: float, workdir: Path) -> Optional[Dict[str, Any]]:
        wrap_dir = Path(workdir) / "wrap"
        test_dir = Path(workdir) / "test"
        wrap_dir.mkdir(parents=True, exist_ok=True)
        test_dir.mkdir(parents=True, exist_ok=True)

        pc_file = wrap_dir / "path_condition.json"
        pc_file.write_text(json.dumps(path_condition.to_dict(), indent=2), encoding="utf-8")

        budget = max(1, int(budget_seconds))
        cmd = self.build_command(path_condition, budget, pc_file, test_dir)
        self.logger.debug(f"Running EvoSuite: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=budget + self.grace_seconds,
            )
        except subprocess.TimeoutExpired:
            self.logger.warning(f"EvoSuite timeout after {budget + self.grace_seconds}s for {path_condition.target}")
            return None

        if result.returncode != 0:
            raise RuntimeError(f"EvoSuite exited with code {result.returncode}: {result.stderr[-500:]}")

        sources = sorted(test_dir.rglob("*_Test.java"))
        if not sources:
            return None

        source = sources[0].read_text(encoding="utf-8")
        inputs_file = test_dir / "inputs.json"
        if inputs_file.exists():
            inputs = json.loads(inputs_file.read_text(encoding="utf-8"))
        else:
            # Without recorded inputs the source itself identifies the case
            inputs = {"source_sha256": hashlib.sha256(source.encode("utf-8")).hexdigest()}
        return {"inputs": inputs, "source": source}

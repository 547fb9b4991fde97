"""
JBSE Wrapper - process-backed symbolic engine
"""
import json
import logging
import os
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Iterator, List, Optional

from ..core.options import Options, Visibility
from ..core.models.path_condition import MethodSignature
from .base import ExplorationRequest, RawPath, SymbolicEngine


# Main class of the exploration driver shipped in the support library
DEFAULT_DRIVER = "sushi.execution.jbse.PathExplorerDriver"


class JbseProcessEngine(SymbolicEngine):
    """
    Wrapper cho JBSE symbolic execution engine

    Workflow:
    1. Build a java command over the JBSE and support libraries plus the
       project classpath
    2. Pass target, depth bounds, scopes and uninterpreted methods as flags
    3. Stream one JSON path record per stdout line
    4. Kill the process when its timeout elapses
    """

    def __init__(self, options: Options, driver_class: str = DEFAULT_DRIVER, list_timeout: int = 60):
        """
        Initialize JBSE wrapper

        Args:
            options: Run configuration (paths, solver, classpath)
            driver_class: Main class of the exploration driver
            list_timeout: Timeout for method listing (seconds)
        """
        self.logger = logging.getLogger(__name__)
        self.options = options
        self.driver_class = driver_class
        self.list_timeout = list_timeout

    def required_paths(self) -> List[Path]:
        return [self.options.z3_path, self.options.jbse_path, self.options.sushi_lib_path]

    def _classpath(self) -> str:
        entries = [self.options.jbse_path, self.options.sushi_lib_path] + list(self.options.classes_path)
        return os.pathsep.join(str(p) for p in entries)

    def _base_command(self) -> List[str]:
        return [self.options.java_command, "-cp", self._classpath(), self.driver_class]

    def list_target_methods(self, class_name: str, visibility: Visibility) -> List[MethodSignature]:
        cmd = self._base_command() + [
            "--list-methods", class_name,
            "--visibility", visibility.name,
        ]
        self.logger.info(f"Listing methods: {' '.join(cmd)}")
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.list_timeout)
        if result.returncode != 0:
            self.logger.error(f"✗ Method listing failed: {result.stderr[:500]}")
            return []

        methods = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
                methods.append(MethodSignature.of(data["class"], data["descriptor"], data["name"]))
            except (json.JSONDecodeError, KeyError, ValueError) as e:
                self.logger.warning(f"Skipping malformed method record {line!r}: {e}")
        return methods

    def build_command(self, request: ExplorationRequest) -> List[str]:
        """Command line for one exploration request"""
        cmd = self._base_command() + [
            "--target", str(request.target),
            "--max-depth", str(request.max_depth),
            "--max-tc-depth", str(request.max_test_case_depth),
            "--max-simple-array-length", str(request.max_simple_array_length),
            "--z3", str(self.options.z3_path),
            "--count-scope", str(request.scope.count_scope),
        ]
        for class_name, scope in sorted(request.scope.heap_scope.items()):
            cmd.extend(["--heap-scope", f"{class_name}={scope}"])
        for sig in request.uninterpreted:
            cmd.extend(["--uninterpreted", str(sig)])
        if request.seed is not None:
            cmd.extend([
                "--seed-inputs", json.dumps(request.seed.inputs, sort_keys=True, default=repr),
                "--seed-depth", str(request.seed.depth),
            ])
        elif self.options.initial_test is not None:
            cmd.extend([
                "--initial-test", str(self.options.initial_test),
                "--initial-test-path", str(self.options.initial_test_path),
            ])
        return cmd

    def explore(self, request: ExplorationRequest) -> Iterator[RawPath]:
        cmd = self.build_command(request)
        self.logger.debug(f"Running JBSE: {' '.join(cmd)}")

        # stderr goes to a file so a chatty engine cannot block on a full pipe
        stderr_file = tempfile.TemporaryFile(mode="w+")
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=stderr_file,
            text=True,
        )
        killer: Optional[threading.Timer] = None
        if request.timeout is not None:
            killer = threading.Timer(request.timeout, process.kill)
            killer.daemon = True
            killer.start()

        try:
            for line in process.stdout:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield RawPath.from_dict(json.loads(line))
                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    yield RawPath(error=f"malformed path record: {e}")

            returncode = process.wait()
            if returncode != 0:
                stderr_file.seek(0)
                stderr = stderr_file.read()
                if killer is not None and not killer.is_alive() and returncode < 0:
                    self.logger.warning(f"JBSE timeout after {request.timeout}s for {request.target}")
                else:
                    yield RawPath(error=f"JBSE exited with code {returncode}: {stderr[-500:]}")
        finally:
            if killer is not None:
                killer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()
            if process.stdout:
                process.stdout.close()
            stderr_file.close()

"""
Output Assembler - deduplicate test cases and write each one exactly once
"""
import logging
import threading
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from ..core.models.test_case import TestCase
from .test_writer import TestWriter, java_identifier


class OutputAssembler:
    """
    Writes one test source per unique (target, concrete inputs) pair.

    Safe to call from several concretization workers at once.
    """

    def __init__(self, out_dir: Path, writer: Optional[TestWriter] = None):
        self.logger = logging.getLogger(__name__)
        self.out_dir = Path(out_dir)
        self.writer = writer or TestWriter()
        self._lock = threading.Lock()
        self._seen: Set[Tuple] = set()
        self._counters: Dict[str, int] = defaultdict(int)
        self.written: List[Path] = []
        self.duplicates = 0

    def accept(self, test_case: TestCase) -> Optional[Path]:
        """
        Persist a test case unless an equivalent one was already written.

        Returns:
            Path of the written file, or None for a duplicate

        Raises:
            OSError: the file could not be written; the case is not marked as seen
        """
        key = test_case.dedup_key()
        with self._lock:
            if key in self._seen:
                self.duplicates += 1
                self.logger.debug(f"Duplicate test case for {test_case.target} skipped")
                return None
            self._seen.add(key)

            target = test_case.target
            stem = f"{target.simple_class_name}_{java_identifier(target.name)}"
            self._counters[stem] += 1
            class_name = f"{stem}_{self._counters[stem]}_Test"

            package_dir = self.out_dir.joinpath(*target.class_name.replace("/", ".").split(".")[:-1])
            path = package_dir / f"{class_name}.java"
            try:
                package_dir.mkdir(parents=True, exist_ok=True)
                path.write_text(self.writer.render(test_case, class_name), encoding="utf-8")
            except OSError:
                self._seen.discard(key)
                self._counters[stem] -= 1
                raise
            self.written.append(path)

        self.logger.info(f"✓ Test written: {path}")
        return path

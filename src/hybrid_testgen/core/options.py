"""
Run configuration - immutable Options snapshot plus the builder that produces it
"""
import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ConfigurationError
from .models.path_condition import MethodSignature, ScopeSet


logger = logging.getLogger(__name__)


class TimeUnit(Enum):
    """Time units accepted for budgets and timeouts (value = seconds per unit)"""
    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    @classmethod
    def coerce(cls, unit: Union["TimeUnit", str]) -> "TimeUnit":
        if isinstance(unit, TimeUnit):
            return unit
        return cls[str(unit).strip().upper()]


@dataclass(frozen=True)
class Duration:
    """A (duration, unit) pair"""
    amount: float
    unit: TimeUnit = TimeUnit.SECONDS

    def to_seconds(self) -> float:
        return self.amount * self.unit.value

    def __str__(self) -> str:
        return f"{self.amount} {self.unit.name.lower()}"


class Visibility(Enum):
    """Which methods of a target class get tests"""
    PUBLIC = "public"
    PACKAGE = "package"


class Coverage(Enum):
    """Coverage objective"""
    PATHS = "paths"
    BRANCHES = "branches"
    UNSAFE = "unsafe"


@dataclass(frozen=True)
class ByClass:
    """Target every eligible method of a class"""
    class_name: str


@dataclass(frozen=True)
class ByMethod:
    """Target a single method"""
    signature: MethodSignature


TargetSelection = Union[ByClass, ByMethod]


@dataclass(frozen=True)
class PoolConfig:
    """
    Size and throttle of one worker pool.

    The throttle factor reserves that fraction of the pool as idle headroom:
    at most floor(threads * (1 - throttle)) tasks run at once, never fewer
    than one.
    """
    threads: int = 1
    throttle: float = 0.0

    def __post_init__(self):
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")
        if not 0.0 <= self.throttle <= 1.0:
            raise ValueError(f"throttle must be in [0, 1], got {self.throttle}")

    @property
    def max_concurrency(self) -> int:
        return max(1, math.floor(self.threads * (1.0 - self.throttle)))


# Verbosity names -> logging levels
LOG_LEVELS: Dict[str, int] = {
    "OFF": logging.CRITICAL + 10,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": 5,
    "ALL": 1,
}

RUN_NAME_FORMAT = "%Y_%m_%d_%H_%M_%S"


@dataclass(frozen=True)
class ConfigRejected:
    """A configuration update that was refused; the previous value was kept"""
    option: str
    value: Any
    reason: str

    def __str__(self) -> str:
        return f"{self.option}={self.value!r} rejected: {self.reason}"


@dataclass(frozen=True)
class Options:
    """
    Immutable configuration snapshot for one run.

    Build it with OptionsBuilder; use to_builder() to derive a modified copy.
    """
    target: TargetSelection
    run_name: str
    verbosity: str = "INFO"
    initial_test: Optional[MethodSignature] = None
    initial_test_path: Path = Path("out")
    visibility: Visibility = Visibility.PUBLIC
    coverage: Coverage = Coverage.BRANCHES
    max_depth: int = 50
    max_test_case_depth: int = 25
    exploration_pool: PoolConfig = PoolConfig()
    concretization_pool: PoolConfig = PoolConfig()
    classes_path: Tuple[Path, ...] = ()
    tmp_base: Path = Path("tmp")
    out_dir: Path = Path("out")
    z3_path: Path = Path("/usr/bin/z3")
    jbse_path: Path = Path("lib/jbse.jar")
    java8_home: Optional[Path] = None
    evosuite_path: Path = Path("lib/evosuite-shaded-1.0.6-SNAPSHOT.jar")
    sushi_lib_path: Path = Path("lib/sushi-lib.jar")
    evosuite_time_budget: Duration = Duration(180, TimeUnit.SECONDS)
    evosuite_no_dependency: bool = False
    global_time_budget: Duration = Duration(10, TimeUnit.MINUTES)
    timeout_mosa_task_creation: Duration = Duration(5, TimeUnit.SECONDS)
    num_mosa_targets: int = 5
    scope: ScopeSet = ScopeSet()
    uninterpreted: Tuple[MethodSignature, ...] = ()
    max_simple_array_length: int = 100_000
    single_clause_mode: bool = False
    single_clause_replaces_whole: bool = False
    split_fingerprint_mode: bool = False

    @property
    def target_class(self) -> Optional[str]:
        return self.target.class_name if isinstance(self.target, ByClass) else None

    @property
    def target_method(self) -> Optional[MethodSignature]:
        return self.target.signature if isinstance(self.target, ByMethod) else None

    @property
    def log_level(self) -> int:
        return LOG_LEVELS[self.verbosity]

    @property
    def tmp_dir(self) -> Path:
        return self.tmp_base / self.run_name if self.run_name else self.tmp_base

    @property
    def tmp_bin_dir(self) -> Path:
        return self.tmp_dir / "bin"

    @property
    def tmp_wrappers_dir(self) -> Path:
        return self.tmp_dir / "wrap"

    @property
    def tmp_tests_dir(self) -> Path:
        return self.tmp_dir / "test"

    @property
    def java_command(self) -> str:
        if self.java8_home is None:
            return "java"
        return str((self.java8_home / "bin" / "java").absolute())

    def to_builder(self) -> "OptionsBuilder":
        return OptionsBuilder._from_options(self)

    def to_dict(self) -> Dict[str, Any]:
        """Flat, printable view of the snapshot"""
        return {
            "target_class": self.target_class,
            "target_method": str(self.target_method) if self.target_method else None,
            "visibility": self.visibility.name,
            "coverage": self.coverage.name,
            "max_depth": self.max_depth,
            "max_tc_depth": self.max_test_case_depth,
            "exploration_pool": f"{self.exploration_pool.threads} threads, throttle {self.exploration_pool.throttle}",
            "concretization_pool": f"{self.concretization_pool.threads} threads, throttle {self.concretization_pool.throttle}",
            "global_time_budget": str(self.global_time_budget),
            "evosuite_time_budget": str(self.evosuite_time_budget),
            "num_mosa_targets": self.num_mosa_targets,
            "timeout_mosa_task_creation": str(self.timeout_mosa_task_creation),
            "heap_scope": dict(self.scope.heap_scope),
            "count_scope": self.scope.count_scope,
            "uninterpreted": [str(s) for s in self.uninterpreted],
            "single_clause_mode": self.single_clause_mode,
            "split_fingerprint_mode": self.split_fingerprint_mode,
            "run_dir": str(self.tmp_dir),
            "out_dir": str(self.out_dir),
        }


class OptionsBuilder:
    """
    Mutable builder for Options.

    Out-of-range updates never raise: the previous value is kept, the
    rejection is logged and recorded in `rejections`, and the setter returns
    False so callers can tell.
    """

    def __init__(self):
        self.rejections: List[ConfigRejected] = []
        self._target: Optional[TargetSelection] = None
        self._run_name: Optional[str] = None
        self._verbosity = "INFO"
        self._initial_test: Optional[MethodSignature] = None
        self._initial_test_path = Path("out")
        self._visibility = Visibility.PUBLIC
        self._coverage = Coverage.BRANCHES
        self._max_depth = 50
        self._max_test_case_depth = 25
        self._exploration_threads = 1
        self._exploration_throttle = 0.0
        self._concretization_threads = 1
        self._concretization_throttle = 0.0
        self._classes_path: List[Path] = []
        self._tmp_base = Path("tmp")
        self._out_dir = Path("out")
        self._z3_path = Path("/usr/bin/z3")
        self._jbse_path = Path("lib/jbse.jar")
        self._java8_home: Optional[Path] = None
        self._evosuite_path = Path("lib/evosuite-shaded-1.0.6-SNAPSHOT.jar")
        self._sushi_lib_path = Path("lib/sushi-lib.jar")
        self._evosuite_time_budget = Duration(180, TimeUnit.SECONDS)
        self._evosuite_no_dependency = False
        self._global_time_budget = Duration(10, TimeUnit.MINUTES)
        self._timeout_mosa_task_creation = Duration(5, TimeUnit.SECONDS)
        self._num_mosa_targets = 5
        self._heap_scope: Dict[str, int] = {}
        self._count_scope = 0
        self._uninterpreted: List[MethodSignature] = []
        self._max_simple_array_length = 100_000
        self._single_clause_mode = False
        self._single_clause_replaces_whole = False
        self._split_fingerprint_mode = False

    # ---- bookkeeping -------------------------------------------------

    def _reject(self, option: str, value: Any, reason: str) -> bool:
        rejection = ConfigRejected(option=option, value=value, reason=reason)
        self.rejections.append(rejection)
        logger.warning(f"✗ Configuration rejected: {rejection}")
        return False

    def _number(self, option: str, value: Any, kind: Callable[[Any], Any] = int) -> Optional[Any]:
        try:
            return kind(value)
        except (TypeError, ValueError):
            self._reject(option, value, "must be a number")
            return None

    def clone(self) -> "OptionsBuilder":
        """Independent copy; collections (heap scope included) are not shared"""
        the_clone = copy.copy(self)
        the_clone.rejections = list(self.rejections)
        the_clone._classes_path = list(self._classes_path)
        the_clone._heap_scope = dict(self._heap_scope)
        the_clone._uninterpreted = list(self._uninterpreted)
        return the_clone

    @classmethod
    def _from_options(cls, options: Options) -> "OptionsBuilder":
        builder = cls()
        builder._target = options.target
        builder._run_name = options.run_name
        builder._verbosity = options.verbosity
        builder._initial_test = options.initial_test
        builder._initial_test_path = options.initial_test_path
        builder._visibility = options.visibility
        builder._coverage = options.coverage
        builder._max_depth = options.max_depth
        builder._max_test_case_depth = options.max_test_case_depth
        builder._exploration_threads = options.exploration_pool.threads
        builder._exploration_throttle = options.exploration_pool.throttle
        builder._concretization_threads = options.concretization_pool.threads
        builder._concretization_throttle = options.concretization_pool.throttle
        builder._classes_path = list(options.classes_path)
        builder._tmp_base = options.tmp_base
        builder._out_dir = options.out_dir
        builder._z3_path = options.z3_path
        builder._jbse_path = options.jbse_path
        builder._java8_home = options.java8_home
        builder._evosuite_path = options.evosuite_path
        builder._sushi_lib_path = options.sushi_lib_path
        builder._evosuite_time_budget = options.evosuite_time_budget
        builder._evosuite_no_dependency = options.evosuite_no_dependency
        builder._global_time_budget = options.global_time_budget
        builder._timeout_mosa_task_creation = options.timeout_mosa_task_creation
        builder._num_mosa_targets = options.num_mosa_targets
        builder._heap_scope = dict(options.scope.heap_scope)
        builder._count_scope = options.scope.count_scope
        builder._uninterpreted = list(options.uninterpreted)
        builder._max_simple_array_length = options.max_simple_array_length
        builder._single_clause_mode = options.single_clause_mode
        builder._single_clause_replaces_whole = options.single_clause_replaces_whole
        builder._split_fingerprint_mode = options.split_fingerprint_mode
        return builder

    # ---- read access (mirrors Options) -------------------------------

    @property
    def target_class(self) -> Optional[str]:
        return self._target.class_name if isinstance(self._target, ByClass) else None

    @property
    def target_method(self) -> Optional[MethodSignature]:
        return self._target.signature if isinstance(self._target, ByMethod) else None

    @property
    def exploration_threads(self) -> int:
        return self._exploration_threads

    @property
    def exploration_throttle(self) -> float:
        return self._exploration_throttle

    @property
    def concretization_threads(self) -> int:
        return self._concretization_threads

    @property
    def concretization_throttle(self) -> float:
        return self._concretization_throttle

    @property
    def heap_scope(self) -> Dict[str, int]:
        return dict(self._heap_scope)

    @property
    def count_scope(self) -> int:
        return self._count_scope

    @property
    def num_mosa_targets(self) -> int:
        return self._num_mosa_targets

    @property
    def tool_paths(self) -> Dict[str, Path]:
        """External tools and libraries a run needs, by name"""
        return {
            "z3": self._z3_path,
            "jbse": self._jbse_path,
            "evosuite": self._evosuite_path,
            "sushi-lib": self._sushi_lib_path,
        }

    # ---- target selection --------------------------------------------

    def set_target_class(self, class_name: str) -> bool:
        if not class_name:
            return self._reject("target_class", class_name, "class name must be non-empty")
        self._target = ByClass(class_name)
        return True

    def set_target_method(self, *signature: str) -> bool:
        try:
            self._target = ByMethod(MethodSignature.of(*signature))
        except ValueError as e:
            return self._reject("target_method", signature, str(e))
        return True

    def set_visibility(self, visibility: Union[Visibility, str]) -> bool:
        try:
            self._visibility = visibility if isinstance(visibility, Visibility) else Visibility[str(visibility).upper()]
        except KeyError:
            return self._reject("visibility", visibility, "expected PUBLIC or PACKAGE")
        return True

    def set_coverage(self, coverage: Union[Coverage, str]) -> bool:
        try:
            self._coverage = coverage if isinstance(coverage, Coverage) else Coverage[str(coverage).upper()]
        except KeyError:
            return self._reject("coverage", coverage, "expected PATHS, BRANCHES or UNSAFE")
        return True

    def set_initial_test(self, *signature: str) -> bool:
        try:
            self._initial_test = MethodSignature.of(*signature)
        except ValueError as e:
            return self._reject("initial_test", signature, str(e))
        return True

    def set_initial_test_none(self) -> None:
        self._initial_test = None

    def set_initial_test_path(self, path: Union[str, Path]) -> bool:
        self._initial_test_path = Path(path)
        return True

    # ---- bounds --------------------------------------------------------

    def set_max_depth(self, max_depth: int) -> bool:
        value = self._number("max_depth", max_depth)
        if value is None:
            return False
        if value < 0:
            return self._reject("max_depth", max_depth, "must be >= 0")
        self._max_depth = value
        return True

    def set_max_test_case_depth(self, max_depth: int) -> bool:
        value = self._number("max_tc_depth", max_depth)
        if value is None:
            return False
        if value < 0:
            return self._reject("max_tc_depth", max_depth, "must be >= 0")
        self._max_test_case_depth = value
        return True

    def set_heap_scope(self, class_name: str, scope: int) -> bool:
        if not class_name:
            return self._reject("heap_scope", class_name, "class name must be non-empty")
        value = self._number("heap_scope", scope)
        if value is None:
            return False
        if value < 0:
            return self._reject("heap_scope", f"{class_name}={scope}", "must be >= 0")
        self._heap_scope[class_name] = value
        return True

    def set_heap_scope_unlimited(self, class_name: Optional[str] = None) -> None:
        """Drop the scope of one class, or of every class when none is given"""
        if class_name is None:
            self._heap_scope = {}
        else:
            self._heap_scope.pop(class_name, None)

    def set_count_scope(self, count_scope: int) -> bool:
        value = self._number("count_scope", count_scope)
        if value is None:
            return False
        if value < 0:
            return self._reject("count_scope", count_scope, "must be >= 0 (0 = unlimited)")
        self._count_scope = value
        return True

    def set_uninterpreted(self, *signatures: Union[MethodSignature, Tuple[str, str, str], List[str]]) -> bool:
        parsed = []
        for sig in signatures:
            try:
                parsed.append(sig if isinstance(sig, MethodSignature) else MethodSignature.of(*sig))
            except (TypeError, ValueError) as e:
                return self._reject("uninterpreted", sig, str(e))
        self._uninterpreted = parsed
        return True

    def set_max_simple_array_length(self, length: int) -> bool:
        value = self._number("max_simple_array_length", length)
        if value is None:
            return False
        if value < 0:
            return self._reject("max_simple_array_length", length, "must be >= 0")
        self._max_simple_array_length = value
        return True

    # ---- resources -----------------------------------------------------

    def set_exploration_threads(self, threads: int) -> bool:
        value = self._number("exploration_threads", threads)
        if value is None:
            return False
        if value < 1:
            return self._reject("exploration_threads", threads, "must be >= 1")
        self._exploration_threads = value
        return True

    def set_concretization_threads(self, threads: int) -> bool:
        value = self._number("concretization_threads", threads)
        if value is None:
            return False
        if value < 1:
            return self._reject("concretization_threads", threads, "must be >= 1")
        self._concretization_threads = value
        return True

    def set_exploration_throttle(self, factor: float) -> bool:
        value = self._number("exploration_throttle", factor, float)
        if value is None:
            return False
        if not 0.0 <= value <= 1.0:
            return self._reject("exploration_throttle", factor, "must be in [0, 1]")
        self._exploration_throttle = value
        return True

    def set_concretization_throttle(self, factor: float) -> bool:
        value = self._number("concretization_throttle", factor, float)
        if value is None:
            return False
        if not 0.0 <= value <= 1.0:
            return self._reject("concretization_throttle", factor, "must be in [0, 1]")
        self._concretization_throttle = value
        return True

    def _duration(self, option: str, amount: float, unit: Optional[Union[TimeUnit, str]], current: Duration) -> Optional[Duration]:
        value = self._number(option, amount, float)
        if value is None:
            return None
        if value < 0:
            self._reject(option, amount, "must be >= 0")
            return None
        try:
            time_unit = current.unit if unit is None else TimeUnit.coerce(unit)
        except KeyError:
            self._reject(option, unit, f"unknown time unit, expected one of {[u.name for u in TimeUnit]}")
            return None
        return Duration(value, time_unit)

    def set_global_time_budget(self, amount: float, unit: Optional[Union[TimeUnit, str]] = None) -> bool:
        duration = self._duration("global_time_budget", amount, unit, self._global_time_budget)
        if duration is None:
            return False
        self._global_time_budget = duration
        return True

    def set_evosuite_time_budget(self, amount: float, unit: Optional[Union[TimeUnit, str]] = None) -> bool:
        duration = self._duration("evosuite_time_budget", amount, unit, self._evosuite_time_budget)
        if duration is None:
            return False
        self._evosuite_time_budget = duration
        return True

    def set_timeout_mosa_task_creation(self, amount: float, unit: Optional[Union[TimeUnit, str]] = None) -> bool:
        duration = self._duration("timeout_mosa_task_creation", amount, unit, self._timeout_mosa_task_creation)
        if duration is None:
            return False
        self._timeout_mosa_task_creation = duration
        return True

    def set_num_mosa_targets(self, targets: int) -> bool:
        value = self._number("num_mosa_targets", targets)
        if value is None:
            return False
        if value < 1:
            return self._reject("num_mosa_targets", targets, "must be >= 1")
        self._num_mosa_targets = value
        return True

    # ---- mode flags ----------------------------------------------------

    def set_single_clause_mode(self, enabled: bool, replace_whole: bool = False) -> None:
        self._single_clause_mode = bool(enabled)
        self._single_clause_replaces_whole = bool(replace_whole)

    def set_split_fingerprint_mode(self, enabled: bool) -> None:
        self._split_fingerprint_mode = bool(enabled)

    def set_evosuite_no_dependency(self, enabled: bool) -> None:
        self._evosuite_no_dependency = bool(enabled)

    def set_verbosity(self, level: str) -> bool:
        name = str(level).upper()
        if name not in LOG_LEVELS:
            return self._reject("verbosity", level, f"expected one of {list(LOG_LEVELS)}")
        self._verbosity = name
        return True

    # ---- paths ---------------------------------------------------------

    def set_classes_path(self, *paths: Union[str, Path]) -> None:
        self._classes_path = [Path(p) for p in paths]

    def set_tmp_base(self, path: Union[str, Path]) -> None:
        self._tmp_base = Path(path)

    def set_run_name(self, name: Optional[str]) -> None:
        self._run_name = name

    def set_out_dir(self, path: Union[str, Path]) -> None:
        self._out_dir = Path(path)

    def set_z3_path(self, path: Union[str, Path]) -> None:
        self._z3_path = Path(path)

    def set_jbse_path(self, path: Union[str, Path]) -> None:
        self._jbse_path = Path(path)

    def set_java8_home(self, path: Optional[Union[str, Path]]) -> None:
        self._java8_home = Path(path) if path is not None else None

    def set_evosuite_path(self, path: Union[str, Path]) -> None:
        self._evosuite_path = Path(path)

    def set_sushi_lib_path(self, path: Union[str, Path]) -> None:
        self._sushi_lib_path = Path(path)

    # ---- build ---------------------------------------------------------

    def build(
        self,
        run_id: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now
    ) -> Options:
        """
        Validate and freeze the configuration.

        Args:
            run_id: Identifier used as run directory name when none was set
            clock: Fallback source of the run name when neither is given

        Raises:
            ConfigurationError: no target selected, or target is uninterpreted
        """
        if self._target is None:
            raise ConfigurationError("Either a target class or a target method must be set")
        if isinstance(self._target, ByMethod) and self._target.signature in self._uninterpreted:
            raise ConfigurationError(
                f"Target method {self._target.signature} is also listed as uninterpreted"
            )

        run_name = self._run_name or run_id or clock().strftime(RUN_NAME_FORMAT)

        return Options(
            target=self._target,
            run_name=run_name,
            verbosity=self._verbosity,
            initial_test=self._initial_test,
            initial_test_path=self._initial_test_path,
            visibility=self._visibility,
            coverage=self._coverage,
            max_depth=self._max_depth,
            max_test_case_depth=self._max_test_case_depth,
            exploration_pool=PoolConfig(self._exploration_threads, self._exploration_throttle),
            concretization_pool=PoolConfig(self._concretization_threads, self._concretization_throttle),
            classes_path=tuple(self._classes_path),
            tmp_base=self._tmp_base,
            out_dir=self._out_dir,
            z3_path=self._z3_path,
            jbse_path=self._jbse_path,
            java8_home=self._java8_home,
            evosuite_path=self._evosuite_path,
            sushi_lib_path=self._sushi_lib_path,
            evosuite_time_budget=self._evosuite_time_budget,
            evosuite_no_dependency=self._evosuite_no_dependency,
            global_time_budget=self._global_time_budget,
            timeout_mosa_task_creation=self._timeout_mosa_task_creation,
            num_mosa_targets=self._num_mosa_targets,
            scope=ScopeSet(heap_scope=dict(self._heap_scope), count_scope=self._count_scope),
            uninterpreted=tuple(self._uninterpreted),
            max_simple_array_length=self._max_simple_array_length,
            single_clause_mode=self._single_clause_mode,
            single_clause_replaces_whole=self._single_clause_replaces_whole,
            split_fingerprint_mode=self._split_fingerprint_mode,
        )


def _signature_parts(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split(":"))
    return tuple(value)


def _apply_duration(setter: Callable[..., bool], value: Any) -> bool:
    # Accepts `30`, `{"duration": 30, "unit": "SECONDS"}` or `[30, "SECONDS"]`
    if isinstance(value, Mapping):
        return setter(value.get("duration", 0), value.get("unit"))
    if isinstance(value, (list, tuple)):
        return setter(*value)
    return setter(value)


def load_options(config: Mapping[str, Any], builder: Optional[OptionsBuilder] = None) -> OptionsBuilder:
    """
    Apply a configuration mapping (typically parsed YAML) to a builder.

    Args:
        config: Mapping with snake_case option names as keys
        builder: Builder to update (a fresh one when omitted)

    Returns:
        The updated builder

    Raises:
        ConfigurationError: the mapping selects both a target class and a target method
    """
    if config.get("target_class") is not None and config.get("target_method") is not None:
        raise ConfigurationError(
            f"target_class ({config['target_class']}) and target_method ({config['target_method']}) "
            "are mutually exclusive, set only one of them"
        )
    builder = builder or OptionsBuilder()
    simple: Dict[str, Callable[[Any], Any]] = {
        "target_class": builder.set_target_class,
        "visibility": builder.set_visibility,
        "coverage": builder.set_coverage,
        "max_depth": builder.set_max_depth,
        "max_tc_depth": builder.set_max_test_case_depth,
        "count_scope": builder.set_count_scope,
        "max_simple_array_length": builder.set_max_simple_array_length,
        "exploration_threads": builder.set_exploration_threads,
        "exploration_throttle": builder.set_exploration_throttle,
        "concretization_threads": builder.set_concretization_threads,
        "concretization_throttle": builder.set_concretization_throttle,
        "num_mosa_targets": builder.set_num_mosa_targets,
        "split_fingerprint_mode": builder.set_split_fingerprint_mode,
        "evosuite_no_dependency": builder.set_evosuite_no_dependency,
        "verbosity": builder.set_verbosity,
        "initial_test_path": builder.set_initial_test_path,
        "tmp_base": builder.set_tmp_base,
        "run_name": builder.set_run_name,
        "out_dir": builder.set_out_dir,
        "z3_path": builder.set_z3_path,
        "jbse_path": builder.set_jbse_path,
        "java8_home": builder.set_java8_home,
        "evosuite_path": builder.set_evosuite_path,
        "sushi_lib_path": builder.set_sushi_lib_path,
    }
    durations: Dict[str, Callable[..., bool]] = {
        "global_time_budget": builder.set_global_time_budget,
        "evosuite_time_budget": builder.set_evosuite_time_budget,
        "timeout_mosa_task_creation": builder.set_timeout_mosa_task_creation,
    }

    for key, value in config.items():
        if value is None:
            continue
        if key in simple:
            simple[key](value)
        elif key in durations:
            _apply_duration(durations[key], value)
        elif key == "target_method":
            builder.set_target_method(*_signature_parts(value))
        elif key == "initial_test":
            builder.set_initial_test(*_signature_parts(value))
        elif key == "heap_scope":
            for class_name, scope in dict(value).items():
                builder.set_heap_scope(class_name, scope)
        elif key == "uninterpreted":
            builder.set_uninterpreted(*[_signature_parts(v) for v in value])
        elif key == "classes":
            builder.set_classes_path(*([value] if isinstance(value, str) else value))
        elif key == "single_clause_mode":
            if isinstance(value, Mapping):
                builder.set_single_clause_mode(value.get("enabled", False), value.get("replace_whole", False))
            else:
                builder.set_single_clause_mode(value)
        else:
            logger.warning(f"Unknown configuration key ignored: {key}")

    return builder

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Tuple

from ..errors import InvalidConfiguration

REDFIELD_N_TO_C = 16.0 / 106.0


def _parse_scalar(val: str) -> Any:
    # 型推定（真偽/数値/文字列）
    if val.lower() in ("true", "false"):
        return val.lower() == "true"
    try:
        if any(ch in val for ch in ".eE"):
            return float(val)
        return int(val)
    except ValueError:
        return val


def load_config(path: str = "config.yaml") -> Dict[str, Any]:
    """
    Minimal YAML-ish loader: `key: value` lines only, `#` comments and blank
    lines allowed. Comma separated values become lists. A missing file gives
    an empty dict so every knob falls back to its default.
    """
    cfg: Dict[str, Any] = {}
    try:
        # Read bytes then decode with UTF-8, fallback to cp932 (Windows)
        with open(path, "rb") as fb:
            raw = fb.read()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = raw.decode("cp932", errors="ignore")
        for line in text.splitlines():
            s = line.split("#", 1)[0].strip()
            if not s or ":" not in s:
                continue
            k, v = s.split(":", 1)
            key = k.strip()
            val = v.strip()
            if "," in val:
                cfg[key] = [_parse_scalar(x.strip()) for x in val.split(",") if x.strip()]
            else:
                cfg[key] = _parse_scalar(val)
    except FileNotFoundError:
        pass
    return cfg


def parse_pairing(value) -> Tuple[Tuple[int, int], ...]:
    """Accept `"0-1, 2-3"`, `["0-1", "2-3"]` or `[(0, 1), (2, 3)]`."""
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    edges = []
    for item in value:
        if isinstance(item, str):
            parts = item.replace(" ", "").split("-")
            if len(parts) != 2:
                raise InvalidConfiguration(f"bad pairing entry {item!r}, expected 'prey-consumer'")
            try:
                edges.append((int(parts[0]), int(parts[1])))
            except ValueError:
                raise InvalidConfiguration(f"bad pairing entry {item!r}, expected integers")
        else:
            prey, consumer = item
            edges.append((int(prey), int(consumer)))
    return tuple(edges)


def _as_tuple(value) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _as_int(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected an integer, got {value!r}")
        return int(value)
    return int(value)


def _coerce(kind, value):
    """Scalar config value -> the field's declared type (bool, int or float)."""
    if kind is bool:
        if isinstance(value, bool):
            return value
        raise ValueError(f"expected true/false, got {value!r}")
    if kind is int:
        return _as_int(value)
    if kind is float:
        if isinstance(value, bool):
            raise ValueError(f"expected a number, got {value!r}")
        return float(value)
    return value


@dataclass(frozen=True)
class SweepConfig:
    """Every knob of the model and the sweep (immutable)."""
    n_groups: int = 8
    log10_cell_volumes: Tuple[float, ...] = (1.0, 1.0, 1.5, 1.5, 2.0, 2.0, 2.5, 2.5)
    # Even numbered types are obligate autotrophs, the rest obligate heterotrophs
    autotroph_groups: Tuple[int, ...] = (0, 2, 4, 6)
    # (prey, consumer) edges of the grazing matrix
    pairing: Tuple[Tuple[int, int], ...] = ((0, 1), (2, 3), (4, 5), (6, 7))

    # time stepping (days)
    dt: float = 0.05
    max_time: float = 3000.0
    time_out: float = 1000.0

    # nitrate supply sweep: supply(k) = supply_base + k * supply_step
    sweep_count: int = 10
    supply_base: float = 0.02
    supply_step: float = 0.06

    # allometry
    a_cell: float = 18.7
    b_cell: float = 0.89
    a_vmax: float = 9.1e-9
    b_vmax: float = 0.67
    a_kn: float = 0.17
    b_kn: float = 0.27
    respiration_rate: float = 0.03
    a_graz: float = 0.5
    b_graz: float = -0.16
    graz_half_sat: float = 0.5 * REDFIELD_N_TO_C  # umol N L-1 (Ward et al. 2013)
    assimilation_efficiency: float = 0.1

    # initial state of every sweep run
    seed_biomass: Tuple[float, ...] = (1.0,) * 8
    seed_scale: float = 1.0e-2
    seed_nitrate: float = 1.0

    holling: int = 1
    extinction_threshold: float = 1.0e-25
    check_finite: bool = True
    progress_groups: int = 4

    cell_volumes: Tuple[float, ...] = field(init=False, repr=False, compare=False, default=())

    def __post_init__(self):
        object.__setattr__(self, "cell_volumes", tuple(10.0 ** float(v) for v in self.log10_cell_volumes))

    @classmethod
    def from_mapping(cls, cfg: Dict[str, Any]) -> "SweepConfig":
        """Build from a `load_config` dict; unknown keys are ignored with a warning."""
        fields = {f.name: f.type for f in cls.__dataclass_fields__.values() if f.init}
        kwargs: Dict[str, Any] = {}
        for key, val in cfg.items():
            try:
                if key == "cell_volumes":
                    vols = tuple(float(v) for v in _as_tuple(val))
                    if any(not v > 0 for v in vols):
                        raise InvalidConfiguration("cell_volumes must be positive")
                    kwargs["log10_cell_volumes"] = tuple(math.log10(v) for v in vols)
                elif key == "pairing":
                    kwargs["pairing"] = parse_pairing(val)
                elif key in ("log10_cell_volumes", "seed_biomass"):
                    kwargs[key] = tuple(float(v) for v in _as_tuple(val))
                elif key == "autotroph_groups":
                    kwargs[key] = tuple(_as_int(v) for v in _as_tuple(val))
                elif key in fields:
                    kwargs[key] = _coerce(fields[key], val)
                else:
                    print(f"[warn] unknown config key ignored: {key}")
            except (TypeError, ValueError) as e:
                if isinstance(e, InvalidConfiguration):
                    raise
                raise InvalidConfiguration(f"bad value for {key}: {val!r}")
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"bad configuration value: {e}")

    def with_overrides(self, **overrides) -> "SweepConfig":
        return replace(self, **overrides)

    # ===== derived step counts =====
    @property
    def n_step_max(self) -> int:
        return int(round(self.max_time / self.dt))

    @property
    def n_step_out(self) -> int:
        return int(round(self.n_step_max * self.time_out / self.max_time))

    @property
    def n_step_out_max(self) -> int:
        return self.n_step_max // self.n_step_out

    def supply_rate(self, level: int) -> float:
        return self.supply_base + level * self.supply_step

    def supply_levels(self):
        return [self.supply_rate(k) for k in range(self.sweep_count)]

    def validate(self) -> "SweepConfig":
        for f in self.__dataclass_fields__.values():
            if not f.init or f.type not in (int, float):
                continue
            val = getattr(self, f.name)
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise InvalidConfiguration(f"{f.name} must be a number, got {val!r}")
        n = int(self.n_groups)
        if n <= 0:
            raise InvalidConfiguration(f"n_groups must be positive, got {self.n_groups}")
        if len(self.log10_cell_volumes) != n:
            raise InvalidConfiguration(
                f"{len(self.log10_cell_volumes)} cell volumes given for {n} groups"
            )
        if len(self.seed_biomass) != n:
            raise InvalidConfiguration(f"{len(self.seed_biomass)} seed biomasses given for {n} groups")
        for prey, consumer in self.pairing:
            if not (0 <= prey < n and 0 <= consumer < n):
                raise InvalidConfiguration(f"pairing edge ({prey}, {consumer}) outside 0..{n - 1}")
        for g in self.autotroph_groups:
            if not 0 <= g < n:
                raise InvalidConfiguration(f"autotroph group {g} outside 0..{n - 1}")
        if not self.dt > 0:
            raise InvalidConfiguration(f"dt must be positive, got {self.dt}")
        if not self.max_time > 0:
            raise InvalidConfiguration(f"max_time must be positive, got {self.max_time}")
        if not self.time_out > 0:
            raise InvalidConfiguration(f"time_out must be positive, got {self.time_out}")
        if self.n_step_max < 1:
            raise InvalidConfiguration("max_time / dt rounds to zero steps")
        if self.n_step_out < 1 or self.n_step_out > self.n_step_max:
            raise InvalidConfiguration(
                f"time_out={self.time_out} gives an output stride of {self.n_step_out} "
                f"steps for a {self.n_step_max}-step run"
            )
        if self.sweep_count < 1:
            raise InvalidConfiguration("sweep_count must be at least 1")
        if self.holling not in (1, 2):
            raise InvalidConfiguration(f"holling must be 1 or 2, got {self.holling}")
        if self.seed_nitrate < 0 or any(b < 0 for b in self.seed_biomass):
            raise InvalidConfiguration("seed biomass and nitrate must be non-negative")
        return self

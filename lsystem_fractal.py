#!/usr/bin/env python3
"""lsystem_fractal.py

L-system fractal engine: generational string rewriting plus a turtle
traversal that turns the rewritten string into line segments and bounds.

Key features:
- Immutable vector / turtle values.
- Generational (Lindenmayer-parallel) rewriting, eager or streaming.
- Branching via a stack of saved turtles.
- Segment output with a bounding box that always contains the origin.
- Catalog of classic presets (tree, Sierpinski, dragon, Gosper, ...).
- JSON configs and an SVG renderer for the command line.

Drawing alphabet:
  A, B, C  draw one unit forward
  +, -     turn by +theta / -theta
  [, ]     push / pop the turtle
  anything else is ignored

Run:
  python lsystem_fractal.py preset dragon dragon.svg --iterations 10
  python lsystem_fractal.py render config.json output.svg
  python lsystem_fractal.py random out.json --seed 123
  python lsystem_fractal.py --help
"""

from __future__ import annotations

import argparse
import dataclasses
import itertools
import json
import math
import os
import random
import sys
from collections.abc import Generator, Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, cast

Point = tuple[float, float]
Grammar = Mapping[str, str]


# -------------------------
# Errors / Validation
# -------------------------


class LSystemError(ValueError):
    pass


class ConfigError(LSystemError):
    pass


class UnbalancedBracketError(LSystemError):
    """A ']' was traversed while no turtle was saved on the stack."""

    def __init__(self, index: int) -> None:
        super().__init__(f"unbalanced ']' at position {index}: turtle stack is empty")
        self.index = index


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_float(x: Any, path: str) -> float:
    _require(
        isinstance(x, (int, float)) and not isinstance(x, bool),
        f"{path} must be a number",
    )
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_bool(x: Any, path: str) -> bool:
    _require(isinstance(x, bool), f"{path} must be a boolean")
    return cast(bool, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


# -------------------------
# Geometry
# -------------------------


@dataclass(frozen=True)
class Vec2D:
    x: float
    y: float

    @staticmethod
    def zero() -> Vec2D:
        return Vec2D(0.0, 0.0)

    @staticmethod
    def unit(theta: float) -> Vec2D:
        """Unit vector at theta radians, counter-clockwise from +X."""
        return Vec2D(math.cos(theta), math.sin(theta))

    def add(self, other: Vec2D) -> Vec2D:
        return Vec2D(self.x + other.x, self.y + other.y)

    def scale(self, k: float) -> Vec2D:
        return Vec2D(k * self.x, k * self.y)

    def rotate(self, theta: float) -> Vec2D:
        """Rotate counter-clockwise by theta radians."""
        ct, st = math.cos(theta), math.sin(theta)
        return Vec2D(ct * self.x - st * self.y, st * self.x + ct * self.y)

    def as_tuple(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class Turtle:
    position: Vec2D
    # Always unit length: only ever produced by rotating unit(0).
    heading: Vec2D

    @classmethod
    def init(cls) -> Turtle:
        return cls(Vec2D.zero(), Vec2D.unit(0.0))

    def move_dir(self) -> Turtle:
        """Step one unit along the heading."""
        return Turtle(self.position.add(self.heading), self.heading)

    def turn(self, theta: float) -> Turtle:
        return Turtle(self.position, self.heading.rotate(theta))


# -------------------------
# Grammar / L-system model
# -------------------------


def make_grammar(rules: Mapping[str, str]) -> Grammar:
    """Freeze a symbol -> replacement mapping.

    The returned view is detached from ``rules``; mutating the source dict
    afterwards does not change the grammar.
    """
    return MappingProxyType(dict(rules))


@dataclass(frozen=True)
class LSystem:
    axiom: str
    grammar: Grammar
    # Radians, shared by every '+' and '-'.
    theta: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "grammar", make_grammar(self.grammar))

    @classmethod
    def from_degrees(
        cls, axiom: str, rules: Mapping[str, str], angle_deg: float
    ) -> LSystem:
        return cls(axiom, rules, math.radians(angle_deg))

    @property
    def angle_deg(self) -> float:
        return math.degrees(self.theta)


# -------------------------
# Rewriting
# -------------------------


def rewrite(s: str, grammar: Grammar) -> str:
    """Apply one generation: every symbol is replaced simultaneously.

    Symbols without a rule are copied through. Replacements are not
    re-expanded within the same pass.
    """
    return "".join(grammar.get(ch, ch) for ch in s)


def expand(axiom: str, grammar: Grammar, iterations: int) -> str:
    _require(iterations >= 0, "iterations must be >= 0")
    s = axiom
    for _ in range(iterations):
        s = rewrite(s, grammar)
    return s


def generations(axiom: str, grammar: Grammar) -> Generator[str, None, None]:
    """Yield generation 0 (the axiom), 1, 2, ... forever."""
    s = axiom
    while True:
        yield s
        s = rewrite(s, grammar)


def stream_expand(
    axiom: str, grammar: Grammar, iterations: int
) -> Generator[str, None, None]:
    """Yield the symbols of ``expand(axiom, grammar, iterations)`` lazily.

    Uses an explicit stack of (string, index, depth) frames, so memory grows
    with ``iterations`` rather than with the length of the result.
    """
    _require(iterations >= 0, "iterations must be >= 0")

    stack: list[tuple[str, int, int]] = [(axiom, 0, 0)]

    while stack:
        s, i, d = stack.pop()
        if i >= len(s):
            continue

        ch = s[i]
        stack.append((s, i + 1, d))

        if d < iterations and ch in grammar:
            # On top of the continuation, so the whole replacement is
            # emitted before the rest of the current frame.
            stack.append((grammar[ch], 0, d + 1))
        else:
            yield ch


# -------------------------
# Traversal
# -------------------------

DRAW_SYMBOLS = frozenset("ABC")


@dataclass(frozen=True)
class Traversal:
    # Consecutive pairs (2k, 2k + 1) form the k-th segment.
    points: tuple[Vec2D, ...]
    min: Vec2D
    max: Vec2D
    turtle: Turtle
    open_branches: int = 0

    @property
    def segment_count(self) -> int:
        return len(self.points) // 2

    @property
    def segments(self) -> list[tuple[Vec2D, Vec2D]]:
        return list(zip(self.points[0::2], self.points[1::2]))


def traverse(symbols: Iterable[str], theta: float) -> Traversal:
    """Interpret symbols as turtle commands and collect line segments.

    The turtle starts at the origin heading along +X. Bounds start at the
    origin and are widened by the end point of each drawn segment.

    Raises UnbalancedBracketError on a ']' with nothing to restore.
    """
    turtle = Turtle.init()
    stack: list[Turtle] = []
    points: list[Vec2D] = []
    min_x = min_y = max_x = max_y = 0.0

    for i, ch in enumerate(symbols):
        if ch in DRAW_SYMBOLS:
            start = turtle.position
            turtle = turtle.move_dir()
            end = turtle.position
            points.append(start)
            points.append(end)

            min_x = min(min_x, end.x)
            max_x = max(max_x, end.x)
            min_y = min(min_y, end.y)
            max_y = max(max_y, end.y)
        elif ch == "+":
            turtle = turtle.turn(theta)
        elif ch == "-":
            turtle = turtle.turn(-theta)
        elif ch == "[":
            stack.append(turtle)
        elif ch == "]":
            if not stack:
                raise UnbalancedBracketError(i)
            turtle = stack.pop()

    return Traversal(
        points=tuple(points),
        min=Vec2D(min_x, min_y),
        max=Vec2D(max_x, max_y),
        turtle=turtle,
        open_branches=len(stack),
    )


class Simulation:
    """Run state for one L-system: the current string and its geometry.

    ``iterated_axiom`` is the axiom at iteration 0; every ``iterate()``
    performs a real rewrite. ``points``, ``min`` and ``max`` hold the output
    of the last successful ``traverse_axiom()``.
    """

    def __init__(self, lsystem: LSystem) -> None:
        self.lsystem = lsystem
        self.iterated_axiom = lsystem.axiom
        self.iteration = 0
        self.points: list[Vec2D] = []
        self.min = Vec2D.zero()
        self.max = Vec2D.zero()

    def iterate(self) -> None:
        self.iterated_axiom = rewrite(self.iterated_axiom, self.lsystem.grammar)
        self.iteration += 1

    def iterate_n(self, n: int) -> None:
        _require(n >= 0, "iterations must be >= 0")
        for _ in range(n):
            self.iterate()

    def traverse_axiom(self) -> Traversal:
        # Traverse first: a failure leaves the previous output in place.
        result = traverse(self.iterated_axiom, self.lsystem.theta)
        self.points = list(result.points)
        self.min = result.min
        self.max = result.max
        return result

    @property
    def segments(self) -> list[tuple[Vec2D, Vec2D]]:
        return list(zip(self.points[0::2], self.points[1::2]))

    @property
    def bounds(self) -> tuple[Vec2D, Vec2D]:
        return (self.min, self.max)

    def snapshots(self, n: int) -> Generator[tuple[int, Traversal], None, None]:
        """Yield (iteration, traversal) now and after each of n iterations."""
        _require(n >= 0, "iterations must be >= 0")
        yield self.iteration, self.traverse_axiom()
        for _ in range(n):
            self.iterate()
            yield self.iteration, self.traverse_axiom()


# -------------------------
# Presets
# -------------------------

PRESETS: Mapping[str, LSystem] = MappingProxyType(
    {
        "tree": LSystem("A", {"A": "B[+A]-A", "B": "BB"}, 2 * math.pi / 8),
        "sierpinski_regular": LSystem(
            "A-B-B", {"A": "A-B+A+B-A", "B": "BB"}, 2 * math.pi / 3
        ),
        "sierpinski_arrowhead": LSystem(
            "A", {"A": "B-A-B", "B": "A+B+A"}, 2 * math.pi / 6
        ),
        "dragon": LSystem("A", {"A": "A+B", "B": "A-B"}, 2 * math.pi / 4),
        "crystal": LSystem("A", {"A": "AA-A--A-A"}, 2 * math.pi / 4),
        "snowflake": LSystem("A", {"A": "A+A--A+A"}, 2 * math.pi / 6),
        "gosper": LSystem(
            "A",
            {"A": "A-B--B+A++AA+B-", "B": "+A-BB--B-A++A+B"},
            2 * math.pi / 6,
        ),
    }
)


def get_preset(name: str) -> LSystem:
    preset = PRESETS.get(name)
    _require(
        preset is not None,
        f"unknown preset {name!r}; choose one of: {', '.join(sorted(PRESETS))}",
    )
    return cast(LSystem, preset)


# -------------------------
# Render model
# -------------------------


@dataclass(frozen=True)
class SvgStyle:
    stroke: str = "#000"
    stroke_width: float = 1.0
    fill: str = "none"
    stroke_linecap: str = "round"
    stroke_linejoin: str = "round"


@dataclass(frozen=True)
class RenderConfig:
    name: str
    lsystem: LSystem
    iterations: int

    # svg
    scale: float
    margin: float
    precision: int
    flip_y: bool
    width: float | None
    height: float | None
    style: SvgStyle
    background: str | None


@dataclass
class PolylineBuffer:
    polylines: list[list[Point]]

    def start_new(self, p: Point) -> None:
        self.polylines.append([p])

    def current(self) -> list[Point]:
        if not self.polylines:
            raise RuntimeError("current() called before start_new()")
        return self.polylines[-1]

    def add_point(self, p: Point) -> None:
        cur = self.current()
        if not cur or cur[-1] != p:
            cur.append(p)


def segments_to_polylines(points: Sequence[Vec2D]) -> list[list[Point]]:
    """Chain segments that start where the previous one ended."""
    buf = PolylineBuffer(polylines=[])
    for start, end in zip(points[0::2], points[1::2]):
        a = start.as_tuple()
        if not buf.polylines or buf.current()[-1] != a:
            buf.start_new(a)
        buf.add_point(end.as_tuple())
    return buf.polylines


# -------------------------
# SVG writing
# -------------------------


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def _fmt(x: float, precision: int) -> str:
    # Normalise -0.0 so it never produces "-0" in SVG output.
    if not x:
        x = 0.0
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s in ("", "-0"):
        s = "0"
    return s


def write_svg(
    polylines: list[list[Point]],
    *,
    bounds: tuple[Vec2D, Vec2D],
    out_path: str,
    scale: float,
    margin: float,
    precision: int,
    flip_y: bool,
    width: float | None,
    height: float | None,
    style: SvgStyle,
    background: str | None,
    title: str | None = None,
) -> None:
    _require(len(polylines) > 0, "No drawable geometry produced.")

    lo, hi = bounds
    minx = lo.x * scale - margin
    miny = lo.y * scale - margin
    maxx = hi.x * scale + margin
    maxy = hi.y * scale + margin
    w = maxx - minx
    h = maxy - miny
    _require(
        w > 0 and h > 0,
        "Degenerate bounds after margin (width or height is zero). "
        "Set svg.margin > 0 to render collinear geometry.",
    )

    svg_w_attr = f' width="{_fmt(float(width), precision)}"' if width else ""
    svg_h_attr = f' height="{_fmt(float(height), precision)}"' if height else ""

    view_box = (
        f"{_fmt(minx, precision)} {_fmt(miny, precision)} {_fmt(w, precision)} "
        f"{_fmt(h, precision)}"
    )

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        "<svg xmlns=\"http://www.w3.org/2000/svg\" version=\"1.1\" "
        f"viewBox=\"{view_box}\"{svg_w_attr}{svg_h_attr}>"
    )

    if title:
        safe_title = (
            title.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        )
        lines.append(f"  <title>{safe_title}</title>")

    if background and background.lower() != "none":
        lines.append(
            f'  <rect x="{_fmt(minx, precision)}" y="{_fmt(miny, precision)}" '
            f'width="{_fmt(w, precision)}" height="{_fmt(h, precision)}" '
            f'fill="{background}" />'
        )

    style_attr = (
        f'stroke="{style.stroke}" stroke-width="{_fmt(style.stroke_width, precision)}" '
        f'fill="{style.fill}" stroke-linecap="{style.stroke_linecap}" '
        f'stroke-linejoin="{style.stroke_linejoin}"'
    )

    if flip_y:
        # Turtle y grows upwards; flip about the vertical centre of the viewBox.
        flip_y_line = _fmt(miny + maxy, precision)
        lines.append(f'  <g transform="translate(0,{flip_y_line}) scale(1,-1)">')
        indent = "    "
    else:
        indent = "  "

    for pl in polylines:
        pts = " ".join(
            f"{_fmt(x * scale, precision)},{_fmt(y * scale, precision)}"
            for x, y in pl
        )
        lines.append(f'{indent}<polyline points="{pts}" {style_attr} />')

    if flip_y:
        lines.append("  </g>")

    lines.append("</svg>")

    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
        f.write("\n")


# -------------------------
# Config parsing
# -------------------------


def parse_config(obj: dict[str, Any]) -> RenderConfig:
    obj = _as_dict(obj, "root")

    base: LSystem | None = None
    if "preset" in obj:
        base = get_preset(_as_str(obj["preset"], "preset"))

    default_name = _as_str(obj.get("preset", "L-System"), "preset")
    name = _as_str(obj.get("name", default_name), "name")

    if "axiom" in obj or base is None:
        axiom = _as_str(obj.get("axiom", ""), "axiom")
    else:
        axiom = base.axiom
    _require(len(axiom) > 0, "axiom must be non-empty")

    iterations = _as_int(obj.get("iterations", 0), "iterations")
    _require(iterations >= 0, "iterations must be >= 0")

    if "rules" in obj or base is None:
        rules_obj = _as_dict(obj.get("rules", {}), "rules")
        rules: dict[str, str] = {}
        for k, v in rules_obj.items():
            _require(
                isinstance(k, str) and len(k) == 1,
                "rules keys must be single-character strings",
            )
            rules[k] = _as_str(v, f"rules['{k}']")
    else:
        rules = dict(base.grammar)

    if "angle" in obj or base is None:
        angle_deg = _as_float(obj.get("angle", 90), "angle")
        lsystem = LSystem.from_degrees(axiom, rules, angle_deg)
    else:
        lsystem = LSystem(axiom, rules, base.theta)

    svg = _as_dict(obj.get("svg", {}), "svg")
    scale = _as_float(svg.get("scale", 10), "svg.scale")
    _require(scale > 0, "svg.scale must be > 0")
    margin = _as_float(svg.get("margin", 10), "svg.margin")
    precision = _as_int(svg.get("precision", 3), "svg.precision")
    _require(0 <= precision <= 10, "svg.precision must be between 0 and 10")
    flip_y = _as_bool(svg.get("flip_y", True), "svg.flip_y")

    width = svg.get("width")
    height = svg.get("height")
    if width is not None:
        width = _as_float(width, "svg.width")
        _require(width > 0, "svg.width must be > 0")
    if height is not None:
        height = _as_float(height, "svg.height")
        _require(height > 0, "svg.height must be > 0")

    style_obj = _as_dict(svg.get("style", {}), "svg.style")
    style = SvgStyle(
        stroke=_as_str(style_obj.get("stroke", "#000"), "svg.style.stroke"),
        stroke_width=_as_float(
            style_obj.get("stroke_width", 1.0), "svg.style.stroke_width"
        ),
        fill=_as_str(style_obj.get("fill", "none"), "svg.style.fill"),
        stroke_linecap=_as_str(
            style_obj.get("stroke_linecap", "round"), "svg.style.stroke_linecap"
        ),
        stroke_linejoin=_as_str(
            style_obj.get("stroke_linejoin", "round"), "svg.style.stroke_linejoin"
        ),
    )

    background = svg.get("background")
    if background is not None:
        background = _as_str(background, "svg.background")

    return RenderConfig(
        name=name,
        lsystem=lsystem,
        iterations=iterations,
        scale=scale,
        margin=margin,
        precision=precision,
        flip_y=flip_y,
        width=width,
        height=height,
        style=style,
        background=background,
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


# -------------------------
# Random config generator
# -------------------------


def _random_balanced_word(
    rng: random.Random, length: int, *, p_branch: float = 0.20
) -> str:
    """Generate a random replacement word with balanced brackets.

    Produces symbols from: A, B, +, -, [, ]
    """
    word: list[str] = []
    depth = 0

    for _ in range(length):
        r = rng.random()
        if r < p_branch and depth < 3:
            word.append("[")
            depth += 1
            continue
        # At depth 0 this falls through, so branches are rarer at the root.
        if r < p_branch * 2 and depth > 0:
            word.append("]")
            depth -= 1
            continue

        t = rng.random()
        if t < 0.40:
            word.append("A")
        elif t < 0.55:
            word.append("B")
        elif t < 0.775:
            word.append("+")
        else:
            word.append("-")

    word.extend("]" * depth)

    if "A" not in word:
        word.append("A")

    return "".join(word)


def generate_random_config(seed: int | None = None) -> dict[str, Any]:
    rng = random.Random(seed)

    angle = rng.choice([15, 20, 22.5, 25, 30, 36, 45, 60, 90])
    iterations = rng.randint(2, 5)

    rules = {"A": _random_balanced_word(rng, rng.randint(6, 14))}
    if rng.random() < 0.5:
        rules["B"] = rng.choice(["BB", "B", "AB", "B+B"])

    cfg = {
        "name": "Random L-System",
        "axiom": "A",
        "iterations": iterations,
        "rules": rules,
        "angle": angle,
        "svg": {
            "scale": 10,
            "margin": 10,
            "precision": 3,
            "flip_y": True,
            "style": {
                "stroke": "#000",
                "stroke_width": 1.0,
                "fill": "none",
                "stroke_linecap": "round",
                "stroke_linejoin": "round",
            },
        },
    }

    # Generated configs must always parse cleanly.
    parse_config(cfg)
    return cfg


def dump_json(obj: dict[str, Any], path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INPUT JSON SYNTAX (render)

Top-level keys

  name: string (optional)
      Written into the SVG <title>. Defaults to the preset name.

  preset: string (optional)
      Start from a catalog entry (see the "presets" command). Any of
      axiom / rules / angle given alongside it override the preset.

  axiom: string (required unless preset is given)
      The initial word.

  iterations: integer >= 0 (default 0)
      Number of rewriting generations.

  rules: object mapping single-character string -> string (optional)
      Production rules. Symbols without a rule rewrite to themselves.

  angle: number (default 90)
      Turn angle in degrees used by '+' and '-'.

Drawing alphabet (fixed)

  A, B, C   draw one step forward
  +         turn counter-clockwise by angle
  -         turn clockwise by angle
  [         save the turtle
  ]         restore the last saved turtle (error if none is saved)
  other     ignored

SVG options

  svg.scale: number > 0 (default 10)
      SVG units per turtle step.
  svg.margin: number (default 10)
  svg.precision: integer 0..10 (default 3)
  svg.flip_y: boolean (default true)
  svg.width / svg.height: number (optional)
  svg.background: string color (optional)
  svg.style: stroke, stroke_width, fill, stroke_linecap, stroke_linejoin

Example (dragon curve):

    {
      "axiom": "A",
      "iterations": 10,
      "rules": {"A": "A+B", "B": "A-B"},
      "angle": 90
    }
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem_fractal.py",
        description="L-system fractal generator that outputs SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser(
        "render",
        help="Render an L-system JSON config to an SVG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pr.add_argument("config", help="Path to the input JSON config.")
    pr.add_argument("output", help="Path to write the SVG output.")
    pr.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Override the iteration count from the config.",
    )

    pp = sub.add_parser(
        "preset",
        help="Render a catalog preset to an SVG file.",
    )
    pp.add_argument("name", help="Preset name (see the 'presets' command).")
    pp.add_argument("output", help="Path to write the SVG output.")
    pp.add_argument(
        "--iterations", type=int, default=6, help="Generations to apply (default 6)."
    )

    pv = sub.add_parser(
        "validate",
        help="Validate a JSON config and print a brief summary.",
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    sub.add_parser("presets", help="List the built-in presets.")

    pg = sub.add_parser(
        "random",
        help="Generate a random JSON config for experimentation.",
    )
    pg.add_argument("output", help="Where to write the generated JSON file.")
    pg.add_argument(
        "--seed", type=int, default=None, help="Seed for repeatable randomness."
    )

    return p


# -------------------------
# Commands
# -------------------------


def render_config(cfg: RenderConfig, output_path: str) -> Traversal:
    sim = Simulation(cfg.lsystem)
    sim.iterate_n(cfg.iterations)
    traversal = sim.traverse_axiom()

    write_svg(
        segments_to_polylines(traversal.points),
        bounds=(traversal.min, traversal.max),
        out_path=output_path,
        scale=cfg.scale,
        margin=cfg.margin,
        precision=cfg.precision,
        flip_y=cfg.flip_y,
        width=cfg.width,
        height=cfg.height,
        style=cfg.style,
        background=cfg.background,
        title=cfg.name,
    )
    return traversal


def cmd_render(config_path: str, output_path: str, iterations: int | None) -> None:
    cfg = parse_config(load_json(config_path))
    if iterations is not None:
        _require(iterations >= 0, "--iterations must be >= 0")
        cfg = dataclasses.replace(cfg, iterations=iterations)
    render_config(cfg, output_path)


def cmd_preset(name: str, output_path: str, iterations: int) -> None:
    _require(iterations >= 0, "--iterations must be >= 0")
    cfg = parse_config({"preset": name, "iterations": iterations})
    traversal = render_config(cfg, output_path)
    print(f"{name}: {traversal.segment_count} segments -> {output_path}")


_VALIDATE_SYMBOL_LIMIT = 10_000


def cmd_validate(config_path: str) -> None:
    cfg = parse_config(load_json(config_path))
    ls = cfg.lsystem

    print(f"name: {cfg.name}")
    print(f"axiom length: {len(ls.axiom)}")
    print(f"iterations: {cfg.iterations}")
    print(f"rules: {len(ls.grammar)}")
    print(f"angle: {ls.angle_deg:g}deg")
    print(f"svg: scale={cfg.scale} margin={cfg.margin} precision={cfg.precision}")

    # Bounded trial traversal; exponential grammars only get sampled.
    raw = stream_expand(ls.axiom, ls.grammar, cfg.iterations)
    bounded = list(itertools.islice(raw, _VALIDATE_SYMBOL_LIMIT))
    truncated = len(bounded) == _VALIDATE_SYMBOL_LIMIT
    traversal = traverse(bounded, ls.theta)

    sym_label = f"{len(bounded)}+" if truncated else str(len(bounded))
    print(f"symbols (sampled): {sym_label}")
    print(f"segments: {traversal.segment_count}")
    print(
        f"bounds: ({traversal.min.x:g},{traversal.min.y:g}) "
        f"-> ({traversal.max.x:g},{traversal.max.y:g})"
    )
    if truncated:
        print(
            f"warning: expansion exceeds {_VALIDATE_SYMBOL_LIMIT} symbols; "
            "geometry stats are based on the first portion only"
        )
    elif traversal.open_branches:
        print(f"warning: {traversal.open_branches} '[' never closed")
    if not traversal.segment_count:
        raise ConfigError("Config produces no drawable geometry")


def cmd_presets() -> None:
    for name in sorted(PRESETS):
        ls = PRESETS[name]
        rules = " ".join(f"{k}->{v}" for k, v in ls.grammar.items())
        print(f"{name}: axiom={ls.axiom} angle={ls.angle_deg:g}deg rules: {rules}")


def cmd_random(output_path: str, seed: int | None) -> None:
    cfg = generate_random_config(seed)
    dump_json(cfg, output_path)


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "render":
            cmd_render(args.config, args.output, args.iterations)
        elif args.cmd == "preset":
            cmd_preset(args.name, args.output, args.iterations)
        elif args.cmd == "validate":
            cmd_validate(args.config)
        elif args.cmd == "presets":
            cmd_presets()
        elif args.cmd == "random":
            cmd_random(args.output, args.seed)
        else:
            raise AssertionError("unreachable")
    except LSystemError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

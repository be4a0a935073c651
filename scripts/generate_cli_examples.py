from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--quiet", "--width", "320", "--height", "183", "--max-iterations", "200"]


@dataclass
class Example:
    name: str
    args: list[str]
    expected: Path

    @property
    def output_dir(self) -> Path:
        return EXAMPLES_ROOT / self.name

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", *BASE_ARGS, *self.args, "--output-dir", str(self.output_dir)]


EXAMPLES: list[Example] = [
    Example(name="palette-1", args=["--palette", "1"], expected=Path("mandelbrot_1.bmp")),
    Example(name="palette-2", args=["--palette", "2"], expected=Path("mandelbrot_2.bmp")),
    Example(name="palette-3", args=["--palette", "3"], expected=Path("mandelbrot_3.bmp")),
    Example(name="pad-rows", args=["--pad-rows"], expected=Path("mandelbrot_3.bmp")),
    Example(
        name="seahorse-valley",
        args=["--x-min", "-0.80", "--x-max", "-0.70", "--y-min", "0.05", "--y-max", "0.157"],
        expected=Path("mandelbrot_3.bmp"),
    ),
    Example(name="max-iterations", args=["--max-iterations", "50"], expected=Path("mandelbrot_3.bmp")),
    Example(name="random-palette", args=["--random-palette", "--seed", "3"], expected=Path("mandelbrot_{palette}.bmp")),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            shutil.rmtree(path)


def _verify(example: Example) -> None:
    pattern = example.expected.name.replace("{palette}", "*")
    produced = sorted(example.output_dir.glob(pattern))
    if not produced:
        raise RuntimeError(f"Expected {example.expected} in {example.output_dir} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _ensure_clean([example.output_dir])
        example.output_dir.mkdir(parents=True)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()

"""
Reaction-Diffusion - Headless Entry Point

Usage:
    python -m reaction_diffusion [preset] [--size WxH] [--steps N] [options]

Examples:
    python -m reaction_diffusion
    python -m reaction_diffusion mitosis --steps 5000
    python -m reaction_diffusion fingerprint --size 512x256 --gradient magma
    python -m reaction_diffusion --lut MATPLOTLIB_ocean_r --backend threads
    python -m reaction_diffusion all --nutrient 3 --out snapshots

Options:
    --size WxH        Grid size in cells (default 256x256)
    --steps N         Generations to run before saving (default 2000)
    --backend NAME    numpy, threads, torch or auto (default numpy)
    --gradient NAME   Gradient preset used for coloring
    --lut NAME        Registered LUT used for coloring (overrides --gradient)
    --lut-dir DIR     Register every *.lut file in DIR
    --reverse         Reverse the color source
    --nutrient N      Nutrient pattern index (0-8)
    --noise           Seed with random noise instead of a painted center
    --seed N          Random seed for --noise
    --out DIR         Output directory (default ./screenshots)
    --list            Show presets, gradients, nutrient patterns and LUTs

Snapshots are written as rd_<preset>.png plus latest.png.
"""

import os
import sys
import time

from .gradient_presets import GRADIENT_ORDER
from .lut_manager import LutManager
from .nutrient import NutrientPattern
from .presets import PRESET_ORDER, list_presets


def snap(preset, width, height, steps, out_dir, backend="numpy", gradient="rainbow",
         lut=None, lut_manager=None, reverse=False, nutrient=0, noise=False, seed=None):
    """Headless mode: run N steps per preset, save a PNG, exit."""
    from PIL import Image
    from .simulator import RDSimulator

    os.makedirs(out_dir, exist_ok=True)
    presets_to_snap = [preset] if preset != "all" else PRESET_ORDER

    for pkey in presets_to_snap:
        sim = RDSimulator(width, height, preset_key=pkey, backend=backend,
                          gradient=gradient, lut_manager=lut_manager)
        try:
            # Color source changes start a cross-fade; snapshots want the target
            if lut is not None:
                sim.set_lut(lut)
            sim.set_lut_reversed(reverse)
            sim.engine.set_nutrient_pattern(nutrient)

            if noise:
                sim.fill_with_noise(seed)
            else:
                sim.paint(width // 2, height // 2, radius=max(5, min(width, height) // 10))

            print(f"  {pkey}: running {steps} steps on {sim.engine.engine_name}...",
                  end="", flush=True)
            t0 = time.perf_counter()
            sim.engine.step_n(steps)
            elapsed = time.perf_counter() - t0
            rgb = sim.render(now=sim.clock() + sim.color_transition.duration)
        finally:
            sim.close()

        img = Image.fromarray(rgb)
        path = os.path.join(out_dir, f"rd_{pkey}.png")
        img.save(path)
        img.save(os.path.join(out_dir, "latest.png"))
        rate = steps / elapsed if elapsed > 0 else float("inf")
        print(f" {rate:.0f} steps/s, saved: {path}")


def print_listing(lut_manager):
    print("\nPresets:")
    for key, name, desc in list_presets():
        print(f"    {key:18s} {name:18s} {desc}")
    print("\nGradients:")
    for name in GRADIENT_ORDER:
        print(f"    {name}")
    print("\nNutrient patterns:")
    for pattern in NutrientPattern.all():
        print(f"    {int(pattern)}  {pattern.label}")
    print("\nLUTs:")
    for name in lut_manager.get_available_luts():
        print(f"    {name}")
    print()


def main(argv=None):
    preset = "brain_coral"
    width, height = 256, 256
    steps = 2000
    backend = "numpy"
    gradient = "rainbow"
    lut = None
    reverse = False
    nutrient = 0
    noise = False
    seed = None
    out_dir = os.path.join(os.getcwd(), "screenshots")
    show_list = False
    lut_manager = LutManager()

    args = sys.argv[1:] if argv is None else list(argv)
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            parts = args[i + 1].lower().split("x")
            if len(parts) == 1:
                parts = parts * 2
            width, height = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--steps" and i + 1 < len(args):
            steps = int(args[i + 1])
            i += 2
        elif arg == "--backend" and i + 1 < len(args):
            backend = args[i + 1]
            i += 2
        elif arg == "--gradient" and i + 1 < len(args):
            gradient = args[i + 1]
            if gradient not in GRADIENT_ORDER:
                print(f"Unknown gradient: {gradient}")
                print(f"Available: {', '.join(GRADIENT_ORDER)}")
                return 1
            i += 2
        elif arg == "--lut" and i + 1 < len(args):
            lut = args[i + 1]
            i += 2
        elif arg == "--lut-dir" and i + 1 < len(args):
            names = lut_manager.add_directory(args[i + 1])
            print(f"[RD] Registered {len(names)} LUTs from {args[i + 1]}")
            i += 2
        elif arg == "--reverse":
            reverse = True
            i += 1
        elif arg == "--nutrient" and i + 1 < len(args):
            nutrient = int(args[i + 1])
            i += 2
        elif arg == "--noise":
            noise = True
            i += 1
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--out" and i + 1 < len(args):
            out_dir = args[i + 1]
            i += 2
        elif arg == "--list":
            show_list = True
            i += 1
        elif arg in ("--help", "-h"):
            print(__doc__)
            return 0
        elif arg in PRESET_ORDER or arg == "all":
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return 1

    if show_list:
        print_listing(lut_manager)
        return 0

    if lut is not None and lut not in lut_manager:
        print(f"Unknown LUT: {lut}")
        print("Use --list to see available LUTs")
        return 1

    print(f"Headless snap mode: {preset} @ {width}x{height}, {steps} steps")
    snap(preset, width, height, steps, out_dir, backend=backend, gradient=gradient,
         lut=lut, lut_manager=lut_manager, reverse=reverse, nutrient=nutrient,
         noise=noise, seed=seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())

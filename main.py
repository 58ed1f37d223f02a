# main.py
import time
import traceback
import os

# Import project modules
import constants as const
from assembler import BoxParameters, build_box
from errors import PuzzleBoxError
from utils import RandomSource
from visualization import (
    find_solution_path,
    visualize_maze_connectivity,
    visualize_maze_links,
    visualize_maze_solution,
)


def run_puzzle_box_generation(seed=None, output_dir="output", **box_options):
    start_time = time.time()
    os.makedirs(output_dir, exist_ok=True)

    print("\n--- Configuration ---")
    params = BoxParameters(**box_options)
    rng = RandomSource(seed)
    print(f"  {params}")
    print(
        f"  Wall/Maze T: {params.wall_thickness:.2f}/{params.maze_thickness:.2f}, "
        f"Step: {params.maze_step:.2f}, Clearance: {params.clearance:.2f}"
    )
    print(f"  Complexity: {params.maze_complexity}, Seed: {rng.seed}")

    try:
        results = build_box(params, rng)
    except PuzzleBoxError as e:
        print(f"ERROR building box: {e}")
        traceback.print_exc()
        return None

    # === Check the solids ===
    print("\n--- Checking Meshes ---")
    for result in results:
        print(result.summary())
        for mesh in result.meshes:
            tm = mesh.to_trimesh()
            degenerate = mesh.degenerate_faces()
            print(
                f"  {mesh.name}: watertight={tm.is_watertight}, "
                f"winding consistent={tm.is_winding_consistent}, "
                f"degenerate faces={len(degenerate)}"
            )
            if degenerate:
                print(f"  WARN: {mesh.name} has degenerate faces, e.g. {degenerate[:5]}")
            if mesh.has_coincident_points():
                print(f"  WARN: {mesh.name} has coincident points.")
        if not result.is_closed:
            print(f"  WARN: Part {result.part} has open edges.")

    # --- Visualizations ---
    print("\n--- Generating Visualizations ---")
    for result in results:
        for grid, maze, layout in zip(result.grids, result.mazes, result.layouts):
            side = "inside" if layout.inside else "outside"
            prefix = os.path.join(output_dir, f"part{result.part}_{side}")
            path = find_solution_path(grid, maze.exit_cell, maze.park_cell)
            if path:
                print(f"  Part {result.part} {side} solution: {len(path)} cells")
            visualize_maze_links(grid, maze, filename=f"{prefix}_links.png")
            visualize_maze_solution(grid, maze, filename=f"{prefix}_solution.png")
            visualize_maze_connectivity(grid, maze, filename=f"{prefix}_connectivity.png")

    end_time = time.time()
    print(f"\n--- Total Execution Time: {end_time - start_time:.2f} seconds ---")
    return results


if __name__ == "__main__":
    run_puzzle_box_generation(parts=const.DEFAULT_PARTS)

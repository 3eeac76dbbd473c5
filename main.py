# main.py
"""
Main entry point for the mixing entropy simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Places the initial red/blue population and sets up the physics loop.
4. Runs the main loop: step physics, compute the entropy tick, render.
5. Handles clean shutdown.
"""
import logging
import argparse
import cProfile
import pstats
import io
from typing import Optional, List

from utils import setup_logging, load_config


def run(config: dict) -> List[float]:
    """
    Runs the simulation loop for a loaded configuration.

    Returns the total entropy of every completed tick, in order.
    """
    from particle import ParticleSystem
    from simulation import Simulation
    from entropy import EntropyEngine

    sim_params = config['simulation_parameters']
    run_params = config['run_control']
    vis_params = config['visualization']

    # --- Component Initialization ---
    particles = ParticleSystem(sim_params)
    sim = Simulation(particles, sim_params)
    engine = EntropyEngine(sim_params['box_size'], sim_params['grid_n'])

    visualizer = None
    if not run_params.get('headless', False):
        from visualization import Visualizer
        visualizer = Visualizer(sim_params['box_size'], engine.grid_n, vis_params)

    log_throttle = max(1, run_params.get('log_throttle_steps', 100))
    max_steps = run_params.get('max_steps', 5000)

    history = []
    step_num = 0
    running = True
    while running:
        sim.step()
        sample = engine.compute_tick(sim.get_positions(), sim.get_color_flags())
        history.append(sample.total)
        step_num += 1

        if visualizer is not None and not visualizer.draw(particles, engine, sample, particles.overlap_possible):
            running = False

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(
                f"Step {step_num}/{max_steps} | S_total={sample.total:.4f} | S_max={sample.s_max:.4f}"
            )

        if step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False

    if visualizer is not None:
        visualizer.close()
    logging.info("Simulation loop finished.")
    return history


def main(argv: Optional[list] = None):
    """
    The main function to run the simulation.
    """
    parser = argparse.ArgumentParser(description="Two-color gas mixing entropy simulation.")
    parser.add_argument("--config", default="config.json", help="Path to the JSON configuration file.")
    parser.add_argument("--headless", action="store_true", help="Run without opening a window.")
    parser.add_argument("--steps", type=int, default=None, help="Override run_control.max_steps.")
    args = parser.parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return

    if args.headless:
        config['run_control']['headless'] = True
    if args.steps is not None:
        config['run_control']['max_steps'] = args.steps

    setup_logging(config)
    logging.info("--- Mixing Entropy Simulation Starting ---")

    profiler = cProfile.Profile() if config['run_control'].get('profile') else None
    if profiler is not None:
        profiler.enable()

    history = run(config)

    if profiler is not None:
        profiler.disable()
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    if history:
        logging.info(f"Final total entropy: {history[-1]:.4f} after {len(history)} ticks.")
    logging.info("--- Mixing Entropy Simulation Shutting Down ---")


if __name__ == "__main__":
    main()

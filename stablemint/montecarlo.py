from typing import Callable, List

from multiprocess import Pool

from stablemint.metrics import Metrics
from stablemint.simulation import Simulation


def run_simulation(simulation: Simulation) -> Metrics:
    return simulation.run()


class MonteCarlo:
    """
    Runs independent simulations in parallel, each built by `simulation_factory`.
    """

    def __init__(
        self,
        simulation_factory: Callable[[], Simulation],
        simulations_number: int,
        processes: int = 4,
    ):
        self.processes = processes
        self.simulation_factory = simulation_factory
        self.simulations_number = simulations_number

    def run(self) -> List[Metrics]:
        simulations = [self.simulation_factory() for _ in range(self.simulations_number)]
        if self.processes == 1:
            return [run_simulation(simulation) for simulation in simulations]

        with Pool(self.processes) as pool:
            return pool.map(run_simulation, simulations)

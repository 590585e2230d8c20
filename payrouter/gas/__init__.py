"""Gas cost estimation."""

from payrouter.gas.estimator import GasEstimator
from payrouter.gas.fee_data import FeeData, FeeDataSource, Web3FeeDataSource

__all__ = ["GasEstimator", "FeeData", "FeeDataSource", "Web3FeeDataSource"]

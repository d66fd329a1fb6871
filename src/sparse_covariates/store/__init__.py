from .covariate_data import CovariateData

__all__ = ["CovariateData"]

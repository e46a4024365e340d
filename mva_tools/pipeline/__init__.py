from .analysis import AnalysisPipeline
from .inference import ModelReader
from .training import TrainingPipeline

__all__ = ["TrainingPipeline", "ModelReader", "AnalysisPipeline"]

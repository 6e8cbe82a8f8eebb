"""
Eachlabs Prediction Engine

- PredictionClient: submit a prediction, fetch its status
- ResultPoller: bounded polling until a terminal status
"""

from aibooth.engines.prediction.client import PredictionClient
from aibooth.engines.prediction.poller import ResultPoller
from aibooth.engines.prediction.schemas import PredictionStatus, extract_output

__all__ = ["PredictionClient", "ResultPoller", "PredictionStatus", "extract_output"]

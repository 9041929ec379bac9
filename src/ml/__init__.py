"""ML module."""
from src.ml.anomaly import AnomalyDetector, AnomalyResult
from src.ml.temporal import PatternAnalyzer, classify_trend

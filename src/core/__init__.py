"""Core module."""
from src.core.alert_evaluator import AlertEvaluator, AlertMonitor, InMemoryDedupStore, recommendation_for
from src.core.dispatch import LoggingDispatcher, NotificationDispatcher
from src.core.formatter import daily_tip, format_output
from src.core.prediction_engine import PredictionEngine
from src.core.recommendations import RecommendationGenerator
from src.core.scanner import AgroClimateScanner, CycleResult

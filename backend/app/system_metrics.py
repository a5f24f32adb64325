import threading
import time
from typing import Any


_lock = threading.Lock()
_COUNTERS = (
    "turns_started_total",
    "turns_completed_total",
    "turns_no_speech_total",
    "turns_transcription_failed_total",
    "turns_generation_failed_total",
    "turns_audio_degraded_total",
    "question_transitions_total",
    "question_fallbacks_total",
    "intro_fallbacks_total",
    "intro_audio_missing_total",
    "feedback_reports_total",
    "feedback_fallbacks_total",
    "sessions_created_total",
    "sessions_completed_total",
    "sessions_abandoned_total",
    "sessions_active",
)
_metrics: dict[str, float] = {name: 0.0 for name in _COUNTERS}
_metrics.update({
    "turn_latency_total_ms": 0.0,
    "turn_latency_samples": 0.0,
})


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def set_metric(name: str, value: float) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = max(0.0, float(value))


def observe_turn_latency_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["turn_latency_total_ms"] = float(_metrics.get("turn_latency_total_ms", 0.0)) + latency
        _metrics["turn_latency_samples"] = float(_metrics.get("turn_latency_samples", 0.0)) + 1.0


def get_metric(name: str) -> float:
    with _lock:
        return float(_metrics.get(str(name or "").strip(), 0.0))


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    latency_samples = max(1.0, float(data.get("turn_latency_samples") or 0.0))

    payload: dict[str, Any] = {"generated_at": time.time()}
    payload.update({name: int(data.get(name) or 0.0) for name in _COUNTERS})
    payload.update({
        "turn_latency_total_ms": float(data.get("turn_latency_total_ms") or 0.0),
        "turn_latency_samples": int(data.get("turn_latency_samples") or 0.0),
        "avg_turn_latency_ms": round(float(data.get("turn_latency_total_ms") or 0.0) / latency_samples, 2),
    })

    if extra:
        payload.update(extra)
    return payload

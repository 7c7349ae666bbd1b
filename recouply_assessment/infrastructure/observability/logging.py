"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "recouply-assessment"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_assessment(
    request_id: str,
    age_band: str,
    loss_pct_band: str,
    risk_tier: str,
    roi_multiple: float,
    duration_ms: float,
) -> None:
    """Log structured assessment outcome; inputs are bands only, no amounts"""
    logging.info(
        "Assessment completed",
        extra={
            "request_id": request_id,
            "step": "assessment_complete",
            "age_band": age_band,
            "loss_pct_band": loss_pct_band,
            "risk_tier": risk_tier,
            "roi_multiple": roi_multiple,
            "duration_ms": duration_ms,
        },
    )


def log_lead_captured(request_id: str, lead_id: str, risk_tier: str, has_company: bool) -> None:
    """Log lead capture without the contact details"""
    logging.info(
        "Assessment lead captured",
        extra={
            "request_id": request_id,
            "step": "lead_captured",
            "lead_id": lead_id,
            "risk_tier": risk_tier,
            "has_company": has_company,
        },
    )


def log_assessment_shared(request_id: str, share_type: str, risk_tier: str) -> None:
    """Log a shared assessment; the recipient address stays out of the logs"""
    logging.info(
        "Assessment shared",
        extra={
            "request_id": request_id,
            "step": "assessment_shared",
            "share_type": share_type,
            "risk_tier": risk_tier,
        },
    )

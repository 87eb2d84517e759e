"""API router exports."""
from indeks.api.cron import router as cron

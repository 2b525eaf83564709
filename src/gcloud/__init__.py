"""Google Cloud backend for the automation engine."""

from gcloud.client import GoogleService, snapshot_name

__all__ = ['GoogleService', 'snapshot_name']

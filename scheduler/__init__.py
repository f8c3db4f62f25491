# Scheduler module for background tasks

from .link_cleanup import start_scheduler, stop_scheduler, purge_expired_links_job

__all__ = ["start_scheduler", "stop_scheduler", "purge_expired_links_job"]

from .auto_expire import run_expiry_sweep, start_expiry_job

__all__ = ['run_expiry_sweep', 'start_expiry_job']

from .ActiveRecord import ActiveRecord

__all__ = ["ActiveRecord"]

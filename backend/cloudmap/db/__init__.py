from cloudmap.db.session import init_db, log_generation, recent_generations, persistence_enabled

__all__ = ["init_db", "log_generation", "recent_generations", "persistence_enabled"]

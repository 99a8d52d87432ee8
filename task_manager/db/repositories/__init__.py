"""
Per-domain repository modules for document access.

Every function takes the :class:`~task_manager.db.storage.DocumentStore`
first, the way the SQL repositories take the session.
"""

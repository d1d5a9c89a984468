"""
Plugin Repository

Key-value store of uploaded plugins, keyed by plugin name. Archives are
stored as opaque bytes; re-saving a name replaces the previous plugin
wholesale (last writer wins).

Two implementations share one interface:
    SqlPluginStore: SQLAlchemy session backed, used by the application.
    MemoryPluginStore: dict backed, used by tests and local tooling.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..database import PluginRecord
from ..models.plugin_models import Plugin

logger = logging.getLogger(__name__)


class PluginStore(ABC):
    """
    Store of Plugin records.

    Every listing method returns plugins ordered by name (case-sensitive).
    """

    @abstractmethod
    def load(self, name: str) -> Optional[Plugin]:
        """Return the plugin with this name, or None."""

    @abstractmethod
    def save(self, plugin: Plugin) -> Plugin:
        """Insert the plugin or replace the one with the same name."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete one plugin, returning whether it existed."""

    @abstractmethod
    def all(self) -> List[Plugin]:
        """Every stored plugin."""

    @abstractmethod
    def values(self, offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        """One page of plugins, count=None meaning no limit."""

    @abstractmethod
    def between(self, lower: str, upper: str) -> List[Plugin]:
        """Plugins with lower <= name <= upper."""

    @abstractmethod
    def filter(self, query: Optional[str], offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        """
        One page of plugins whose name contains query, ignoring case.

        A missing query matches every plugin.
        """

    def delete_between(self, lower: str, upper: str) -> int:
        """Delete plugins with lower <= name <= upper, returning how many."""
        return sum(1 for plugin in self.between(lower, upper) if self.delete(plugin.name))

    def delete_all(self) -> int:
        return sum(1 for plugin in self.all() if self.delete(plugin.name))


def _page(plugins: List[Plugin], offset: int, count: Optional[int]) -> List[Plugin]:
    end = None if count is None else offset + count
    return plugins[offset:end]


class MemoryPluginStore(PluginStore):
    """In-process store, contents are lost with the process"""

    def __init__(self) -> None:
        self._plugins: Dict[str, Plugin] = {}

    def _sorted(self) -> List[Plugin]:
        return [self._plugins[name] for name in sorted(self._plugins)]

    def load(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def save(self, plugin: Plugin) -> Plugin:
        self._plugins[plugin.name] = plugin
        return plugin

    def delete(self, name: str) -> bool:
        return self._plugins.pop(name, None) is not None

    def all(self) -> List[Plugin]:
        return self._sorted()

    def values(self, offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        return _page(self._sorted(), offset, count)

    def between(self, lower: str, upper: str) -> List[Plugin]:
        return [p for p in self._sorted() if lower <= p.name <= upper]

    def filter(self, query: Optional[str], offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        plugins = self._sorted()
        if query:
            needle = query.lower()
            plugins = [p for p in plugins if needle in p.name.lower()]
        return _page(plugins, offset, count)

    def __len__(self) -> int:
        return len(self._plugins)


class SqlPluginStore(PluginStore):
    """
    Plugin store on the "plugins" table.

    Example:
        store = SqlPluginStore(db)
        plugin = store.load("demo")
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")
        self._slow_query_threshold = 1.0  # seconds

    @staticmethod
    def _to_plugin(record: PluginRecord) -> Plugin:
        return Plugin(
            name=record.name,
            filename=record.filename,
            archive=bytes(record.archive),
            user=record.user,
            timestamp=record.timestamp,
        )

    def _query(self):
        return self.db.query(PluginRecord).order_by(PluginRecord.name)

    def _run(self, operation: str, query, offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        start_time = time.time()
        try:
            if offset:
                query = query.offset(offset)
            if count is not None:
                query = query.limit(count)
            plugins = [self._to_plugin(record) for record in query.all()]
        except Exception as e:
            self.logger.error(f"Error in {operation}: {e}")
            raise

        self._log_query_performance(operation, time.time() - start_time, len(plugins))
        return plugins

    def load(self, name: str) -> Optional[Plugin]:
        record = self.db.get(PluginRecord, name)
        return self._to_plugin(record) if record is not None else None

    def save(self, plugin: Plugin) -> Plugin:
        timestamp = plugin.timestamp
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)

        try:
            self.db.merge(
                PluginRecord(
                    name=plugin.name,
                    filename=plugin.filename,
                    archive=plugin.archive,
                    user=plugin.user,
                    timestamp=timestamp,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self.logger.error(f"Error saving plugin {plugin.name}: {e}")
            raise

        self.logger.debug(f"Saved plugin {plugin.name} ({len(plugin.archive)} bytes)")
        return plugin

    def delete(self, name: str) -> bool:
        try:
            deleted = self.db.query(PluginRecord).filter(PluginRecord.name == name).delete()
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self.logger.error(f"Error deleting plugin {name}: {e}")
            raise
        return deleted > 0

    def delete_between(self, lower: str, upper: str) -> int:
        try:
            deleted = (
                self.db.query(PluginRecord)
                .filter(PluginRecord.name >= lower, PluginRecord.name <= upper)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self.logger.error(f"Error deleting plugins {lower}..{upper}: {e}")
            raise
        return deleted

    def delete_all(self) -> int:
        try:
            deleted = self.db.query(PluginRecord).delete()
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self.logger.error(f"Error deleting all plugins: {e}")
            raise
        return deleted

    def all(self) -> List[Plugin]:
        return self._run("all", self._query())

    def values(self, offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        return self._run("values", self._query(), offset, count)

    def between(self, lower: str, upper: str) -> List[Plugin]:
        query = self._query().filter(PluginRecord.name >= lower, PluginRecord.name <= upper)
        return self._run("between", query)

    def filter(self, query: Optional[str], offset: int = 0, count: Optional[int] = None) -> List[Plugin]:
        statement = self._query()
        if query:
            statement = statement.filter(PluginRecord.name.ilike(f"%{_escape_like(query)}%", escape="\\"))
        return self._run("filter", statement, offset, count)

    def _log_query_performance(self, operation: str, duration: float, result_count: int) -> None:
        log_msg = f"{operation} completed in {duration:.3f}s ({result_count} results)"
        if duration > self._slow_query_threshold:
            self.logger.warning(f"SLOW QUERY: {log_msg}")
        else:
            self.logger.debug(log_msg)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

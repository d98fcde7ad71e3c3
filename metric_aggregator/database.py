"""
数据库操作抽象层

封装所有 SQLite 操作：
- metrics: 指标定义（名称为主键，类型 / 保留个数 / 显示顺序）
- metrics_values: 只追加的历史值，外键级联到 metrics
- panel_configs: 面板（指标名第一段）的显示顺序

保留窗口裁剪与全局过期清理只作用于 metrics_values，指标定义只会被显式删除。
"""

import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional

from .config import get_config
from .errors import MetricNotFoundError
from .models import MetricHistory, MetricValue

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS metrics (
    name            TEXT    NOT NULL PRIMARY KEY,
    type            TEXT    NOT NULL,
    num_aggregation INTEGER NOT NULL DEFAULT 1,
    display_order   INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS panel_configs (
    name            TEXT    NOT NULL PRIMARY KEY,
    display_order   INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS metrics_values (
    metric_name TEXT    NOT NULL REFERENCES metrics(name) ON DELETE CASCADE,
    value       TEXT    NOT NULL,
    recorded_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_metrics_values_name ON metrics_values(metric_name);
CREATE INDEX IF NOT EXISTS idx_metrics_values_recorded_at ON metrics_values(recorded_at);
"""


class MetricStore(ABC):
    """指标存储接口"""

    @abstractmethod
    def save_metric(self, name: str, metric_type: str, num_aggregation: int, value: str, recorded_at: int):
        """更新指标定义、追加一个值，并把历史裁剪到 num_aggregation 个"""

    @abstractmethod
    def get_latest_metrics(self) -> List[MetricHistory]:
        """每个指标定义及其最新的一个值（无值时 history 为空）"""

    @abstractmethod
    def get_metric_history(self, name: str) -> MetricHistory:
        """指标定义及全部保留值（按时间升序），不存在时抛出 MetricNotFoundError"""

    @abstractmethod
    def delete_metric(self, name: str):
        """删除指标定义及其所有值（幂等）"""

    @abstractmethod
    def update_metric_order(self, name: str, order: int):
        """更新指标显示顺序"""

    @abstractmethod
    def update_panel_order(self, name: str, order: int):
        """更新面板显示顺序"""

    @abstractmethod
    def get_panel_orders(self) -> Dict[str, int]:
        """全部面板显示顺序"""

    @abstractmethod
    def cleanup_expired_values(self, retention_seconds: int, now: Optional[int] = None) -> int:
        """删除早于 now - retention_seconds 的值，返回删除行数"""

    @abstractmethod
    def close(self):
        """释放存储"""


class Database(MetricStore):
    """SQLite 指标存储"""

    def __init__(self, db_path: Optional[str] = None, timeout: Optional[int] = None):
        """
        初始化数据库（自动建表）

        Args:
            db_path: 数据库文件路径，不指定则从配置加载
            timeout: 等待写锁的超时（秒）
        """
        if db_path is None:
            config = get_config()
            db_path = config.database.path
            if timeout is None:
                timeout = config.database.timeout

        self.db_path = Path(db_path)
        self.timeout = timeout if timeout is not None else 30
        self._write_lock = threading.Lock()
        self._closed = False

        # 确保目录存在
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.init_schema()

    @contextmanager
    def get_conn(self):
        """
        获取数据库连接（上下文管理器）

        正常退出时提交，异常时回滚。

        使用方式：
            with db.get_conn() as conn:
                cursor = conn.execute("SELECT ...")
        """
        if self._closed:
            raise RuntimeError("database is closed")

        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        # 启用外键约束（级联删除依赖它）
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self):
        """创建表结构（幂等），并为旧库补充 display_order 列"""
        with self.get_conn() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)

            columns = {row["name"] for row in conn.execute("PRAGMA table_info(metrics)")}
            if "display_order" not in columns:
                conn.execute("ALTER TABLE metrics ADD COLUMN display_order INTEGER NOT NULL DEFAULT 0")

    def close(self):
        self._closed = True

    # =========================================================================
    # 写入
    # =========================================================================

    def save_metric(self, name: str, metric_type: str, num_aggregation: int, value: str, recorded_at: int):
        """
        保存一个指标值

        在同一个事务中依次：
        1. upsert 指标定义（已存在则覆盖 type / num_aggregation）
        2. 插入新值
        3. 只保留最新的 num_aggregation 个值

        "最新"按 recorded_at 降序，时间相同时按插入顺序（rowid）降序。

        Raises:
            ValueError: 名称为空或 num_aggregation < 1
        """
        if not name:
            raise ValueError("metric name must not be empty")
        if num_aggregation < 1:
            raise ValueError(f"numAggregation must be >= 1, got {num_aggregation}")

        # 单写者：整个 upsert-insert-trim 事务串行执行
        with self._write_lock, self.get_conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute("""
                INSERT INTO metrics (name, type, num_aggregation)
                VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    type = excluded.type,
                    num_aggregation = excluded.num_aggregation
            """, (name, metric_type, num_aggregation))

            conn.execute("""
                INSERT INTO metrics_values (metric_name, value, recorded_at)
                VALUES (?, ?, ?)
            """, (name, value, recorded_at))

            conn.execute("""
                DELETE FROM metrics_values
                WHERE metric_name = ?
                  AND rowid NOT IN (
                      SELECT rowid FROM metrics_values
                      WHERE metric_name = ?
                      ORDER BY recorded_at DESC, rowid DESC
                      LIMIT ?
                  )
            """, (name, name, num_aggregation))

    def delete_metric(self, name: str):
        with self._write_lock, self.get_conn() as conn:
            conn.execute("DELETE FROM metrics WHERE name = ?", (name,))

    def update_metric_order(self, name: str, order: int):
        with self._write_lock, self.get_conn() as conn:
            conn.execute("UPDATE metrics SET display_order = ? WHERE name = ?", (order, name))

    def update_panel_order(self, name: str, order: int):
        """面板不是独立实体，按名称 upsert"""
        with self._write_lock, self.get_conn() as conn:
            conn.execute("""
                INSERT INTO panel_configs (name, display_order)
                VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET display_order = excluded.display_order
            """, (name, order))

    def cleanup_expired_values(self, retention_seconds: int, now: Optional[int] = None) -> int:
        """
        清理过期值

        只删除 metrics_values 中的行，指标定义保留（之后显示为无数据）。

        Args:
            retention_seconds: 全局保留时长（秒）
            now: 当前时间（unix 秒），默认取系统时间

        Returns:
            删除的行数
        """
        if now is None:
            now = int(time.time())
        cutoff = now - retention_seconds

        with self._write_lock, self.get_conn() as conn:
            cursor = conn.execute("DELETE FROM metrics_values WHERE recorded_at < ?", (cutoff,))
            return cursor.rowcount

    # =========================================================================
    # 查询
    # =========================================================================

    def get_latest_metrics(self) -> List[MetricHistory]:
        with self.get_conn() as conn:
            cursor = conn.execute("""
                SELECT m.name, m.type, m.num_aggregation, m.display_order, v.value, v.recorded_at
                FROM metrics m
                LEFT JOIN (
                    SELECT metric_name, value, recorded_at,
                        ROW_NUMBER() OVER (
                            PARTITION BY metric_name
                            ORDER BY recorded_at DESC, rowid DESC
                        ) AS rn
                    FROM metrics_values
                ) v ON m.name = v.metric_name AND v.rn = 1
                ORDER BY m.display_order, m.name
            """)

            results = []
            for row in cursor.fetchall():
                history = []
                if row["recorded_at"] is not None:
                    history.append(MetricValue(value=row["value"], recorded_at=row["recorded_at"]))
                results.append(MetricHistory(
                    name=row["name"],
                    type=row["type"],
                    num_aggregation=row["num_aggregation"],
                    display_order=row["display_order"],
                    history=history
                ))
            return results

    def get_metric_history(self, name: str) -> MetricHistory:
        with self.get_conn() as conn:
            row = conn.execute("""
                SELECT name, type, num_aggregation, display_order
                FROM metrics
                WHERE name = ?
            """, (name,)).fetchone()
            if row is None:
                raise MetricNotFoundError(name)

            cursor = conn.execute("""
                SELECT value, recorded_at
                FROM metrics_values
                WHERE metric_name = ?
                ORDER BY recorded_at ASC, rowid ASC
            """, (name,))

            return MetricHistory(
                name=row["name"],
                type=row["type"],
                num_aggregation=row["num_aggregation"],
                display_order=row["display_order"],
                history=[
                    MetricValue(value=r["value"], recorded_at=r["recorded_at"])
                    for r in cursor.fetchall()
                ]
            )

    def get_panel_orders(self) -> Dict[str, int]:
        with self.get_conn() as conn:
            cursor = conn.execute("SELECT name, display_order FROM panel_configs")
            return {row["name"]: row["display_order"] for row in cursor.fetchall()}


# 全局数据库实例（延迟加载）
_db: Optional[Database] = None


def get_db() -> Database:
    """获取全局数据库实例"""
    global _db
    if _db is None:
        _db = Database()
    return _db


def reset_db():
    """重置数据库实例（主要用于测试）"""
    global _db
    _db = None

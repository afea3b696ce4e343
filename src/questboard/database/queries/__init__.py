"""Query functions for Questboard.

All functions run inside the caller's transaction and flush without
committing.
"""

from questboard.database.queries.score import get_score_record, record_to_score, store_score
from questboard.database.queries.status import get_status, put_status
from questboard.database.queries.task import (
    delete_all_task_records,
    delete_task_record,
    get_task_record,
    insert_task_record,
    list_task_records,
    record_to_task,
)

__all__ = [
    "get_score_record",
    "record_to_score",
    "store_score",
    "get_status",
    "put_status",
    "delete_all_task_records",
    "delete_task_record",
    "get_task_record",
    "insert_task_record",
    "list_task_records",
    "record_to_task",
]

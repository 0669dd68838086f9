"""
Worker task and salesman plan service.

Each worker has at most one current task and each salesman at most one
current plan. Completed tasks and replaced plans move to history tables.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from bizdesk.exceptions import BusinessLogicError, NotFoundError
from bizdesk.models import (
    AppUser, UserRole, WorkerTask, WorkerTaskHistory, SalesmanPlan, SalesmanPlanHistory
)

logger = logging.getLogger(__name__)

DONE = 'Done'


def _get_user_with_role(session, user_id: int, role: UserRole) -> AppUser:
    user = session.get(AppUser, user_id)
    if not user:
        raise NotFoundError(f'User {user_id} not found', payload={'user_id': user_id})
    if not user.has_role(role):
        raise BusinessLogicError(f'User {user.name} is not a {role.value}')
    return user


# ---------------------------------------------------------------------------
# Worker tasks
# ---------------------------------------------------------------------------

def assign_worker_task(session, worker_id: int, task: str) -> WorkerTask:
    """Assign (or replace) the current task of a worker; progress starts empty."""
    task = (task or '').strip()
    if not task:
        raise BusinessLogicError('Task description is required')
    _get_user_with_role(session, worker_id, UserRole.WORKER)

    now = datetime.now()
    current = session.get(WorkerTask, worker_id)
    if current is None:
        current = WorkerTask(worker_id=worker_id)
        session.add(current)
    current.task = task
    current.progress = ''
    current.assigned_at = now
    current.updated_at = now
    session.commit()

    logger.info(f"Task assigned to worker {worker_id}")
    return current


def update_worker_progress(session, worker_id: int, progress: str) -> WorkerTask:
    """
    Store a progress note for the worker's current task.

    Writing "done" (any case) archives the task to history and marks the
    progress as "Done".
    """
    progress = (progress or '').strip()
    if not progress:
        raise BusinessLogicError('Progress is required')

    current = session.get(WorkerTask, worker_id)
    if current is None:
        raise NotFoundError(f'No task assigned to worker {worker_id}', payload={'worker_id': worker_id})

    now = datetime.now()
    if progress.lower() == 'done':
        if current.is_done:
            raise BusinessLogicError('This task is already completed')
        session.add(WorkerTaskHistory(worker_id=worker_id, task=current.task, completed_at=now))
        current.progress = DONE
        logger.info(f"Worker {worker_id} completed task")
    else:
        current.progress = progress
    current.updated_at = now
    session.commit()
    return current


def get_worker_task(session, worker_id: int) -> Optional[WorkerTask]:
    return session.get(WorkerTask, worker_id)


def worker_progress_overview(session) -> List[Dict[str, Any]]:
    """Every active worker with their current task (or none)."""
    workers = (
        session.query(AppUser)
        .filter(AppUser.role == UserRole.WORKER.value, AppUser.active == True)  # noqa: E712
        .order_by(AppUser.name)
        .all()
    )
    tasks = {t.worker_id: t for t in session.query(WorkerTask).all()}
    overview = []
    for worker in workers:
        task = tasks.get(worker.id)
        overview.append({
            'worker_id': worker.id,
            'worker_name': worker.name,
            'gender': worker.gender,
            'task': task.task if task else None,
            'progress': task.progress if task else None,
            'updated_at': task.updated_at.isoformat() if task and task.updated_at else None,
        })
    return overview


# ---------------------------------------------------------------------------
# Salesman plans
# ---------------------------------------------------------------------------

def save_salesman_plan(session, salesman_id: int, location: str, items_to_carry: str,
                       assigned_by: AppUser) -> SalesmanPlan:
    """
    Save the current plan of a salesman.

    A previous plan that has a location is archived to history with
    end_date = now before being replaced.
    """
    location = (location or '').strip()
    items_to_carry = (items_to_carry or '').strip()
    if not location:
        raise BusinessLogicError('Location is required')
    _get_user_with_role(session, salesman_id, UserRole.SALESMAN)

    now = datetime.now()
    current = session.get(SalesmanPlan, salesman_id)
    if current is not None and current.location:
        session.add(SalesmanPlanHistory(
            salesman_id=salesman_id,
            location=current.location,
            items_to_carry=current.items_to_carry,
            assigned_by=current.assigned_by,
            assigned_by_name=current.assigned_by_name,
            updated_at=current.updated_at,
            end_date=now,
        ))
    if current is None:
        current = SalesmanPlan(salesman_id=salesman_id)
        session.add(current)

    current.location = location
    current.items_to_carry = items_to_carry
    current.assigned_by = assigned_by.id
    current.assigned_by_name = assigned_by.name
    current.updated_at = now
    session.commit()

    logger.info(f"Plan saved for salesman {salesman_id} by user {assigned_by.id}")
    return current


def get_salesman_plan(session, salesman_id: int) -> Optional[SalesmanPlan]:
    return session.get(SalesmanPlan, salesman_id)


def list_salesman_plans(session) -> List[SalesmanPlan]:
    return session.query(SalesmanPlan).order_by(SalesmanPlan.updated_at.desc()).all()


def salesman_plan_history(session, salesman_id: Optional[int] = None) -> List[SalesmanPlanHistory]:
    """Archived plans, newest end_date first."""
    query = session.query(SalesmanPlanHistory)
    if salesman_id is not None:
        query = query.filter(SalesmanPlanHistory.salesman_id == salesman_id)
    return query.order_by(SalesmanPlanHistory.end_date.desc(), SalesmanPlanHistory.id.desc()).all()

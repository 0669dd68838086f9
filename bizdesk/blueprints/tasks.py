"""
Worker tasks blueprint.
Managers assign tasks; workers report progress on their own task.
"""
from flask import Blueprint, jsonify, g
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.services import task_service
from bizdesk.utils.request_data import get_payload, parse_id

tasks_bp = Blueprint('tasks', __name__, url_prefix='/tasks')


@tasks_bp.route('', methods=['GET'])
@require_capability('manage_worker_tasks')
def worker_progress():
    """Every worker with the current task and progress."""
    return jsonify({'workers': task_service.worker_progress_overview(get_session())})


@tasks_bp.route('', methods=['POST'])
@require_capability('manage_worker_tasks')
def assign_task():
    data = get_payload()
    task = task_service.assign_worker_task(get_session(), parse_id(data.get('worker_id'), 'worker id'), data.get('task'))
    return jsonify({'status': 'ok', 'task': task.to_dict()}), 201


@tasks_bp.route('/mine', methods=['GET'])
@require_capability('update_own_task')
def my_task():
    task = task_service.get_worker_task(get_session(), g.user.id)
    return jsonify({'task': task.to_dict() if task else None})


@tasks_bp.route('/mine/progress', methods=['POST'])
@require_capability('update_own_task')
def update_progress():
    """Progress note; "done" completes the task and moves it to history."""
    data = get_payload()
    task = task_service.update_worker_progress(get_session(), g.user.id, data.get('progress'))
    return jsonify({'status': 'ok', 'task': task.to_dict()})

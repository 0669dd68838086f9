"""Worker task models: the current task per worker plus completed-task history."""
from sqlalchemy import Column, BigInteger, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizdesk.database import Base


class WorkerTask(Base):
    """Current task assigned to a worker (one row per worker)."""

    __tablename__ = 'worker_tasks'

    worker_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id', ondelete='CASCADE'), primary_key=True)
    task = Column(Text, nullable=False)
    progress = Column(Text, nullable=False, default='')
    assigned_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    worker = relationship('AppUser')

    @property
    def is_done(self):
        return (self.progress or '').strip().lower() == 'done'

    def to_dict(self):
        return {
            'worker_id': self.worker_id,
            'task': self.task,
            'progress': self.progress,
            'assigned_at': self.assigned_at.isoformat() if self.assigned_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<WorkerTask(worker_id={self.worker_id}, progress='{self.progress}')>"


class WorkerTaskHistory(Base):
    """Completed worker task (append-only)."""

    __tablename__ = 'worker_task_history'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    worker_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id', ondelete='CASCADE'), nullable=False, index=True)
    task = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'worker_id': self.worker_id,
            'task': self.task,
            'completed_at': self.completed_at.isoformat(),
        }

    def __repr__(self):
        return f"<WorkerTaskHistory(id={self.id}, worker_id={self.worker_id})>"

"""
The training board: one channel per day, one message per active training.
"""

from .actions import ButtonAction, action_id, parse_action
from .render import TrainingDetails, channel_name, render_training, training_embed
from .reconciler import BoardAction, BoardReconciler, ReconcileReport
from .scheduler import BoardScheduler, status_text

__all__ = [
    'ButtonAction',
    'action_id',
    'parse_action',
    'TrainingDetails',
    'channel_name',
    'render_training',
    'training_embed',
    'BoardAction',
    'BoardReconciler',
    'ReconcileReport',
    'BoardScheduler',
    'status_text',
]

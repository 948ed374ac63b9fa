"""Playlist generation, draft editing and publishing routes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from pydantic import ValidationError as PydanticValidationError

from src.errors import MoodMixError, ValidationError
from src.models.dto import DraftTrackRequest, GenerateRequest, PushDraftRequest


logger = logging.getLogger(__name__)

playlist_bp = Blueprint('playlist_bp', __name__, url_prefix='/api/playlists')


def _service():
    return current_app.extensions['playlist_service']


def _acting_user():
    if getattr(current_user, 'is_authenticated', False):
        return current_user._get_current_object()
    return None


def _parse(model, message: str):
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        errors = {
            '.'.join(str(part) for part in item.get('loc') or ()) or 'form': item.get('msg')
            for item in exc.errors()
        }
        raise ValidationError(message, errors=errors) from exc


def _failure(message: str, status: int = 500):
    logger.exception(message)
    return jsonify({'error': message}), status


@playlist_bp.route('/generate', methods=['POST'])
def generate_playlist():
    body = _parse(GenerateRequest, 'Mood + at least one genre required.')
    user = _acting_user()
    try:
        draft = _service().generate(body.mood, body.genres, body.count, user=user)
    except MoodMixError:
        raise
    except Exception:
        return _failure('Failed to generate playlist.')
    return jsonify({'message': 'Playlist generated successfully.', 'data': draft}), 200


@playlist_bp.route('/draft/track', methods=['DELETE'])
@login_required
def delete_draft_track():
    body = _parse(DraftTrackRequest, 'draftId and trackId are required.')
    try:
        draft = _service().delete_track(_acting_user(), body.draft_id, body.track_id)
    except MoodMixError:
        raise
    except Exception:
        return _failure('Failed to delete track.')
    return jsonify({'message': 'Track deleted.', 'data': draft.to_dict()}), 200


@playlist_bp.route('/draft/push', methods=['POST'])
@login_required
def push_draft():
    body = _parse(PushDraftRequest, 'draftId is required.')
    try:
        record = _service().push(_acting_user(), body.draft_id)
    except MoodMixError:
        raise
    except Exception:
        return _failure('Failed to push playlist.')
    return jsonify({'message': 'Playlist pushed to Spotify.', 'data': record.to_dict()}), 200


def _listing(items, empty_message: str, label: Optional[str] = None):
    if not items:
        return jsonify({'message': empty_message, 'data': []}), 200
    return jsonify({'message': label, 'data': [item.to_dict() for item in items]}), 200


@playlist_bp.route('/history', methods=['GET'])
@login_required
def playlist_history():
    try:
        items = _service().list_history(_acting_user())
    except Exception:
        return _failure('Failed to fetch playlist history.')
    return _listing(items, 'No playlist history found', 'Playlist history fetched.')


@playlist_bp.route('/drafts', methods=['GET'])
@login_required
def draft_history():
    try:
        items = _service().list_drafts(_acting_user())
    except Exception:
        return _failure('Failed to fetch drafts.')
    return _listing(items, 'No drafts found', 'Drafts fetched.')


__all__ = ['playlist_bp']

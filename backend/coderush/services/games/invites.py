from datetime import timedelta
from typing import Any, List

from flask import current_app

from coderush import db
from coderush.errors import Conflict, Forbidden, GameStateError, NotFound, ValidationError
from coderush.models import Game, GameInvite, User, utcnow
from .matchmaking import join_game, resolve_users


def create_invite(game: Game, inviter: User, invitee: Any) -> GameInvite:
    if not game.player_for(inviter.id):
        raise Forbidden('You are not a player in this game')
    if game.status != 'waiting':
        raise GameStateError('Invites can only be sent before the game starts')
    if invitee in (None, ''):
        raise ValidationError('invitee is required')
    invitee_id = resolve_users([invitee])[0]
    if invitee_id == inviter.id:
        raise ValidationError('You cannot invite yourself')
    if game.player_for(invitee_id):
        raise Conflict('That user is already in the game')

    existing = GameInvite.query.filter_by(game_id=game.id, invitee_id=invitee_id, status='pending').first()
    if existing:
        return existing

    now = utcnow()
    ttl = int(current_app.config.get('INVITE_TTL_HOURS', 24))
    invite = GameInvite(game_id=game.id, inviter_id=inviter.id, invitee_id=invitee_id,
                        created_at=now, expires_at=now + timedelta(hours=ttl))
    if game.mode == 'custom' and game.invited_users and invitee_id not in game.invited_users:
        game.invited_users = game.invited_users + [invitee_id]
    db.session.add(invite)
    db.session.commit()
    current_app.logger.info(f"[invite-create] game={game.game_code} inviter={inviter.id} invitee={invitee_id}")
    return invite


def expire_invites(user_id: int) -> int:
    expired = (GameInvite.query
               .filter(GameInvite.invitee_id == user_id, GameInvite.status == 'pending',
                       GameInvite.expires_at <= utcnow())
               .update({'status': 'expired'}, synchronize_session=False))
    if expired:
        db.session.commit()
    return expired


def pending_invites(user: User) -> List[GameInvite]:
    expire_invites(user.id)
    return (GameInvite.query.filter_by(invitee_id=user.id, status='pending')
            .order_by(GameInvite.created_at.desc(), GameInvite.id.desc()).all())


def respond_to_invite(invite_id: int, user: User, accept: bool) -> GameInvite:
    invite = db.session.get(GameInvite, invite_id)
    if not invite or invite.invitee_id != user.id:
        raise NotFound('Invite not found')
    if invite.status == 'pending' and invite.expires_at <= utcnow():
        invite.status = 'expired'
        db.session.commit()
    if invite.status != 'pending':
        raise GameStateError(f'Invite is {invite.status}')

    if accept:
        join_game(invite.game, user)
        invite.status = 'accepted'
    else:
        invite.status = 'declined'
    db.session.commit()
    current_app.logger.info(f"[invite-respond] invite={invite.id} user={user.id} status={invite.status}")
    return invite

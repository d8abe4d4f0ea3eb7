"""Video peer directory.

Tracks which external peer id each participant announced to the peer-signaling
service. Media never passes through here; only peer ids and discovery metadata.

Invariants:
- a participant holds at most one peer id
- a peer id belongs to at most one participant
- removing a single participant (leave, kick, peer change) emits ``peer_left`` for
  its peer id; a session reset does not, ``session_ended`` supersedes it
"""

from loguru import logger

from .classroom_models import Participant, PeerInfo
from .effects import AnnounceOutcome, Broadcast, Outcome
from .events import OutboundEvent
from .session_store import SessionStore


class PeerDirectory:
    def __init__(self, store: SessionStore):
        self._store = store

    def owner_of(self, peer_id: str) -> Participant | None:
        """Reverse lookup: the participant currently holding ``peer_id``."""
        for participant in self._store.participants.values():
            if participant.peer_id == peer_id:
                return participant
        return None

    def peers_for(self, participant_id: str) -> list[PeerInfo]:
        """Active peers visible to ``participant_id``, excluding itself and its own peer id."""
        own = self._store.get(participant_id)
        own_peer_id = own.peer_id if own else None

        return [
            PeerInfo(peer_id=p.peer_id, user_name=p.name, user_role=p.role)
            for p in self._store.others(participant_id)
            if p.peer_id and p.peer_id != own_peer_id
        ]

    def announce(self, participant_id: str, peer_id: str) -> AnnounceOutcome:
        """Register ``peer_id`` for the participant and hand back the peers already present.

        Re-announcing the identical peer id is a no-op: no state change, no broadcast.
        """
        participant = self._store.require(participant_id)

        if participant.peer_id == peer_id:
            logger.info(f"{participant.name} already registered with peer ID: {peer_id}")
            return AnnounceOutcome(duplicate=True)

        outcome = AnnounceOutcome()

        holder = self.owner_of(peer_id)
        if holder is not None:
            logger.warning(f"Peer ID {peer_id} moved from {holder.name} to {participant.name}")
            outcome.extend(self.release(holder.id))

        if participant.peer_id:
            logger.info(
                f"{participant.name} changing peer ID from {participant.peer_id} to {peer_id}"
            )
            outcome.extend(self.release(participant_id))

        participant.peer_id = peer_id
        participant.in_video_call = True

        peers = self.peers_for(participant_id)
        outcome.peers = peers
        outcome.add(
            Broadcast.direct(
                participant_id,
                OutboundEvent.PEERS_IN_ROOM,
                {"peers": [peer.to_wire() for peer in peers]},
            )
        )
        outcome.add(
            Broadcast.to_others(
                participant_id,
                OutboundEvent.PEER_JOINED,
                {
                    "peerId": peer_id,
                    "userName": participant.name,
                    "userRole": participant.role.value,
                },
            )
        )

        logger.info(
            f"{participant.name} is ready with peer ID: {peer_id}. Informing {len(peers)} peers."
        )
        return outcome

    def depart(self, participant_id: str, peer_id: str) -> Outcome:
        """Drop the participant's peer id, but only if it is still the registered one.

        A stale leave racing a reconnect that already registered a new id is ignored.
        """
        participant = self._store.require(participant_id)

        if participant.peer_id != peer_id:
            logger.debug(
                f"Ignoring stale peer_left from {participant.name}: "
                f"{peer_id} != {participant.peer_id}"
            )
            return Outcome()

        return self.release(participant_id)

    def release(self, participant_id: str) -> Outcome:
        """Clear whatever peer id the participant holds and announce its departure."""
        participant = self._store.get(participant_id)
        if participant is None or not participant.peer_id:
            return Outcome()

        peer_id = participant.peer_id
        participant.peer_id = None
        participant.in_video_call = False
        logger.info(f"Peer left video conference: {peer_id}")

        payload = {"peerId": peer_id}
        return Outcome([Broadcast.to_others(participant_id, OutboundEvent.PEER_LEFT, payload)])

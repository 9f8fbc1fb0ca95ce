import datetime as dt
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync

from apps.aviary.services import (
    Bird, BreedingRecord, Cage, EntityValidationError, ItemStore, NoteReminder,
    RemoteSyncError, Transaction,
)
from apps.aviary.services.entities import Egg, SubTask

from .conftest import InMemoryRemoteStore


def run(coroutine_function, *args):
    return async_to_sync(coroutine_function)(*args)


def ids(store):
    return [item.id for item in store.snapshot()]


# =============================================================================
# Adding
# =============================================================================

class TestAdd:
    """Tests for add_one / add_many"""

    def test_add_one_prepends(self, store, remote):
        """A new item goes before every existing item."""
        before = ids(store)
        bird = Bird(id='b9', species='Galah', sex='female')

        result = run(store.add_one, bird)

        assert result.ok
        assert ids(store) == ['b9'] + before
        assert store.get('b9') == bird
        assert remote.items[0] == bird

    def test_add_one_generates_id(self, store):
        """Items created without an id get a category-prefixed one."""
        cage = Cage(name='Nursery')

        run(store.add_one, cage)

        assert cage.id.startswith('c')
        assert store.snapshot()[0] is cage

    def test_add_many_keeps_batch_order(self, store):
        """A batch is prepended in the order given."""
        first = Cage(id='c8', name='A')
        second = Cage(id='c9', name='B')

        run(store.add_many, [first, second])

        assert ids(store)[:2] == ['c8', 'c9']

    def test_add_duplicate_id_rejected(self, store, remote):
        """Adding an id already in the collection changes nothing."""
        before = store.snapshot()

        result = run(store.add_one, Cage(id='c1', name='Copy'))

        assert not result.ok
        assert isinstance(result.error, EntityValidationError)
        assert store.snapshot() == before
        assert remote.applied == []

    def test_add_invalid_entity_rejected(self, store):
        """Validation errors are returned, not raised."""
        result = run(store.add_one, Bird(id='b9', species=''))

        assert not result.ok
        assert 'species' in str(result.error)
        assert store.get('b9') is None

    def test_add_non_finite_amount_rejected(self, store, remote):
        """A NaN amount is a validation error, not an exception."""
        transaction = Transaction(
            id='t9', type='income', date=dt.date(2024, 3, 1), description='Sale', amount=Decimal('NaN'),
        )

        result = run(store.add_one, transaction)

        assert not result.ok
        assert isinstance(result.error, EntityValidationError)
        assert store.get('t9') is None
        assert remote.applied == []

    def test_add_many_is_all_or_nothing(self, aviary):
        """One failing row reverts the whole batch."""
        remote = InMemoryRemoteStore(aviary, failing_ids={'c9'})
        store = ItemStore(aviary, remote=remote)

        result = run(store.add_many, [Cage(id='c8', name='A'), Cage(id='c9', name='B')])

        assert not result.ok
        assert isinstance(result.error, RemoteSyncError)
        assert store.snapshot() == tuple(aviary)
        assert remote.items == tuple(aviary)

    def test_local_change_visible_before_remote_confirms(self, aviary):
        """Reads made while the remote write is pending see the new item."""
        seen = []

        class RecordingRemote(InMemoryRemoteStore):
            async def apply(self, command):
                seen.append(store.get('b9'))
                await super().apply(command)

        store = ItemStore(aviary, remote=RecordingRemote(aviary))
        run(store.add_one, Bird(id='b9', species='Galah'))

        assert seen[0] is not None


# =============================================================================
# Updating
# =============================================================================

class TestUpdate:
    """Tests for update_one / update_many"""

    def test_update_one_merges_fields(self, store, remote):
        """Only the given fields change."""
        result = run(store.update_one, '1', {'status': 'Sold', 'paid_price': '120.50'})

        bird = store.get('1')
        assert result.ok
        assert bird.status == 'Sold'
        assert bird.paid_price == Decimal('120.50')
        assert bird.species == 'Budgerigar'
        assert bird.mate_id == '4'
        assert remote.applied[0].updates[0][1] == bird

    def test_update_keeps_position(self, store):
        """Updated items stay where they were."""
        before = ids(store)

        run(store.update_one, '4', {'ring_number': 'ZA-444'})

        assert ids(store) == before

    def test_update_unknown_id_is_noop(self, store, remote):
        """Updating a missing id neither raises nor creates anything."""
        before = store.snapshot()

        result = run(store.update_one, 'missing', {'name': 'Ghost'})

        assert result.ok
        assert not result.changed
        assert store.snapshot() == before
        assert remote.applied == []

    def test_update_cannot_change_id(self, store):
        """Ids are immutable."""
        result = run(store.update_one, '1', {'id': '2'})

        assert not result.ok
        assert store.get('1') is not None

    def test_update_rejects_unknown_field(self, store):
        """Fields that do not belong to the entity are rejected."""
        result = run(store.update_one, 'c1', {'species': 'Galah'})

        assert not result.ok
        assert isinstance(result.error, EntityValidationError)

    def test_update_with_same_values_is_noop(self, store, remote):
        """An update that changes nothing is not sent to the remote store."""
        result = run(store.update_one, 'c1', {'name': 'Flight 1'})

        assert result.ok
        assert remote.applied == []

    def test_update_many_reverts_whole_batch(self, aviary):
        """A remote failure on "y" reverts "x" too."""
        remote = InMemoryRemoteStore(aviary, failing_ids={'y'})
        store = ItemStore(aviary, remote=remote)

        result = run(store.update_many, [{'id': 'x', 'amount': 10}, {'id': 'y', 'amount': 20}])

        assert not result.ok
        assert store.get('x').amount == Decimal('5')
        assert store.get('y').amount == Decimal('7')
        assert store.snapshot() == tuple(aviary)

    def test_update_many_success(self, store):
        """Every change of a batch is applied."""
        result = run(store.update_many, [{'id': 'x', 'amount': 10}, {'id': 'y', 'amount': 20}])

        assert result.ok
        assert store.get('x').amount == Decimal('10')
        assert store.get('y').amount == Decimal('20')

    def test_update_many_skips_unknown_ids(self, store):
        """Unknown ids in a batch are ignored, the rest is applied."""
        result = run(store.update_many, [{'id': 'nope', 'amount': 1}, {'id': 'x', 'amount': 3}])

        assert result.ok
        assert [after.id for _, after in result.command.updates] == ['x']


# =============================================================================
# Deleting
# =============================================================================

class TestDelete:
    """Tests for delete_one / delete_bird / delete_permit / delete_item"""

    def test_delete_one(self, store, remote):
        result = run(store.delete_one, 'x')

        assert result.ok
        assert store.get('x') is None
        assert all(item.id != 'x' for item in remote.items)

    def test_delete_unknown_id_is_noop(self, store, remote):
        """Deleting a missing id neither raises nor contacts the remote store."""
        before = store.snapshot()

        result = run(store.delete_one, 'missing')

        assert result.ok
        assert store.snapshot() == before
        assert remote.applied == []

    def test_delete_bird_scenario(self, store, remote):
        """Deleting bird "1" drops its pair, cage slot and its mate's link."""
        result = run(store.delete_bird, '1')

        assert result.ok
        assert store.get('1') is None
        assert store.get('p1') is None
        assert store.get('c1').bird_ids == ('4',)
        assert store.get('4').mate_id is None
        assert remote.items == store.snapshot()

    def test_delete_bird_persists_as_one_command(self, store, remote):
        """Updates and deletions of the cascade travel together."""
        run(store.delete_bird, '1')

        command = remote.applied[0]
        assert command.label == 'delete_bird'
        assert {after.id for _, after in command.updates} == {'c1', '4'}
        assert {entity.id for _, entity in command.deletes} == {'1', 'p1'}

    def test_delete_unreferenced_bird(self, aviary):
        """A bird nobody refers to is removed with no other updates."""
        loner = Bird(id='b7', species='Cockatiel')
        store = ItemStore(aviary + (loner,), remote=InMemoryRemoteStore(aviary + (loner,)))

        result = run(store.delete_bird, 'b7')

        assert result.ok
        assert result.command.updates == ()
        assert [entity.id for _, entity in result.command.deletes] == ['b7']
        assert store.snapshot() == tuple(aviary)

    def test_delete_bird_remote_failure_reverts(self, aviary):
        """A failed cascade restores every touched item in place."""
        remote = InMemoryRemoteStore(aviary, failing_ids={'p1'})
        store = ItemStore(aviary, remote=remote)

        result = run(store.delete_bird, '1')

        assert not result.ok
        assert store.snapshot() == tuple(aviary)

    def test_delete_bird_clears_lineage_and_references(self):
        """Parents, offspring, eggs, transactions and notes lose the deleted id."""
        items = (
            Bird(id='dad', species='Budgerigar', sex='male', offspring_ids=('chick', 'other')),
            Bird(id='chick', species='Budgerigar', father_id='dad'),
            Bird(id='grandchick', species='Budgerigar', mother_id='chick'),
            BreedingRecord(id='br1', pair_id='p9', eggs=(
                Egg(id='e1', status='Hatched', chick_id='chick'),
                Egg(id='e2', status='Laid'),
            )),
            Transaction(
                id='t1', type='income', date=dt.date(2024, 1, 5),
                description='Sold chick', amount=Decimal('50'), related_bird_id='chick',
            ),
            NoteReminder(
                id='nr1', title='Vet', associated_bird_ids=('chick', 'dad'),
                sub_tasks=(SubTask(id='st1', text='Weigh', associated_bird_ids=('chick',)),),
            ),
        )
        store = ItemStore(items)

        run(store.delete_bird, 'chick')

        assert store.get('dad').offspring_ids == ('other',)
        assert store.get('grandchick').mother_id is None
        assert [egg.chick_id for egg in store.get('br1').eggs] == [None, None]
        assert store.get('t1').related_bird_id is None
        assert store.get('nr1').associated_bird_ids == ('dad',)
        assert store.get('nr1').sub_tasks[0].associated_bird_ids == ()

    def test_delete_bird_on_non_bird_is_noop(self, store):
        result = run(store.delete_bird, 'c1')

        assert result.ok
        assert store.get('c1') is not None

    def test_delete_permit_clears_birds(self, aviary):
        """Birds keep everything except their permit link."""
        bird = Bird(id='b5', species='Grey Parrot', permit_id='pm1', ring_number='ZA-5')
        store = ItemStore(aviary + (bird,), remote=InMemoryRemoteStore(aviary + (bird,)))

        result = run(store.delete_permit, 'pm1')

        assert result.ok
        assert store.get('pm1') is None
        kept = store.get('b5')
        assert kept.permit_id is None
        assert kept.ring_number == 'ZA-5'
        assert kept.species == 'Grey Parrot'

    def test_delete_item_dispatches_by_category(self, store):
        """Deleting a bird through delete_item cascades."""
        run(store.delete_item, '4')

        assert store.get('p1') is None
        assert store.get('1').mate_id is None
        assert store.get('c1').bird_ids == ('1',)


# =============================================================================
# Reads and notifications
# =============================================================================

class TestReads:
    """Tests for snapshots, lookups and subscribers"""

    def test_of_category(self, store):
        assert [item.id for item in store.of_category('Transaction')] == ['x', 'y']

    def test_snapshot_is_immutable(self, store):
        """Snapshots are tuples of frozen records."""
        snapshot = store.snapshot()

        with pytest.raises(TypeError):
            snapshot[0] = None
        with pytest.raises(AttributeError):
            snapshot[0].name = 'Changed'

    def test_subscribers_see_change_and_revert(self, aviary):
        """Subscribers are called for the optimistic change and for its revert."""
        store = ItemStore(aviary, remote=InMemoryRemoteStore(aviary, failing_ids={'x'}))
        calls = []
        store.subscribe(lambda items: calls.append(len(items)))

        run(store.delete_one, 'x')

        assert calls == [len(aviary) - 1, len(aviary)]

    def test_failing_subscriber_does_not_block_revert(self, aviary):
        """A subscriber error is logged; the mutation still reverts and reports."""
        store = ItemStore(aviary, remote=InMemoryRemoteStore(aviary, failing_ids={'x'}))
        calls = []

        def broken(items):
            calls.append(len(items))
            raise RuntimeError('render failed')

        store.subscribe(broken)

        result = run(store.delete_one, 'x')

        assert not result.ok
        assert isinstance(result.error, RemoteSyncError)
        assert calls == [len(aviary) - 1, len(aviary)]
        assert store.snapshot() == tuple(aviary)

    def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(calls.append)
        unsubscribe()

        run(store.delete_one, 'x')

        assert calls == []

    def test_load_from_remote(self, aviary):
        store = run(ItemStore.load, InMemoryRemoteStore(aviary))

        assert store.snapshot() == tuple(aviary)


# =============================================================================
# Reminders
# =============================================================================

class TestCompleteReminder:
    """Tests for complete_reminder"""

    def test_one_off_note_completed(self):
        store = ItemStore([NoteReminder(id='nr1', title='Clean cages')])

        run(store.complete_reminder, 'nr1')

        assert store.get('nr1').completed is True

    def test_recurring_reminder_moves_on(self):
        note = NoteReminder(
            id='nr1', title='Worming', is_reminder=True, reminder_date=dt.date(2024, 1, 31),
            is_recurring=True, recurrence_pattern='monthly',
        )
        store = ItemStore([note])

        run(store.complete_reminder, 'nr1')

        assert store.get('nr1').reminder_date == dt.date(2024, 2, 29)
        assert store.get('nr1').completed is False

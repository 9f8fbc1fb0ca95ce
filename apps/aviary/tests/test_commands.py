import pytest

from apps.aviary.services import Bird, Cage, MutationCommand, apply_command, revert_command
from apps.aviary.services.cascades import plan_bird_delete, plan_permit_delete
from apps.aviary.services.commands import build_add, build_delete, build_update
from apps.aviary.services.exceptions import DuplicateItemError, EntityValidationError


class TestApplyRevert:
    """Tests for apply_command / revert_command"""

    def test_revert_undoes_mixed_command(self, aviary):
        command = MutationCommand(
            label='mixed',
            inserts=(Cage(id='c9', name='New'),),
            updates=((aviary[0], Cage(id='c1', name='Renamed', bird_ids=('1', '4'))),),
            deletes=((3, aviary[3]), (6, aviary[6])),
        )

        applied = apply_command(aviary, command)

        assert applied[0].id == 'c9'
        assert applied[1].name == 'Renamed'
        assert 'x' not in [item.id for item in applied]
        assert revert_command(applied, command) == aviary

    def test_revert_keeps_unrelated_later_changes(self, aviary):
        """Reverting only touches the command's own entities."""
        command = build_delete(aviary, ['x'])
        applied = apply_command(aviary, command)
        later = apply_command(applied, build_update(applied, [{'id': 'y', 'amount': 9}]))

        reverted = revert_command(later, command)

        assert [item.id for item in reverted] == [item.id for item in aviary]
        assert reverted[4].amount == 9

    def test_affected_ids_and_str(self, aviary):
        command = plan_bird_delete(aviary, '1')

        assert set(command.affected_ids) == {'c1', '4', '1', 'p1'}
        assert str(command).startswith('delete_bird[')


class TestBuilders:
    """Tests for command builders"""

    def test_add_rejects_repeated_id_in_batch(self):
        with pytest.raises(DuplicateItemError):
            build_add((), [Cage(id='c1', name='A'), Cage(id='c1', name='B')])

    def test_add_rejects_non_entities(self):
        with pytest.raises(EntityValidationError):
            build_add((), [{'category': 'Cage', 'name': 'A'}])

    def test_update_needs_id(self, aviary):
        with pytest.raises(EntityValidationError):
            build_update(aviary, [{'name': 'No id'}])

    def test_repeated_updates_merge(self, aviary):
        command = build_update(aviary, [
            {'id': 'c1', 'name': 'First'},
            {'id': 'c1', 'cost': '80'},
        ])

        assert len(command.updates) == 1
        before, after = command.updates[0]
        assert before is aviary[0]
        assert (after.name, str(after.cost)) == ('First', '80')

    def test_delete_drops_changes_to_doomed_items(self, aviary):
        command = build_delete(aviary, ['c1'], changes=[{'id': 'c1', 'name': 'Gone'}])

        assert command.updates == ()
        assert [entity.id for _, entity in command.deletes] == ['c1']

    def test_plans_for_missing_targets(self, aviary):
        assert plan_bird_delete(aviary, 'nope') is None
        assert plan_permit_delete(aviary, 'c1') is None

    def test_mate_cleared_one_level_only(self):
        """Only the deleted bird's own mate is touched."""
        items = (
            Bird(id='a', species='Galah', mate_id='b'),
            Bird(id='b', species='Galah', mate_id='c'),
            Bird(id='c', species='Galah', mate_id='b'),
        )

        command = plan_bird_delete(items, 'a')

        assert [after.id for _, after in command.updates] == ['b']
        assert command.updates[0][1].mate_id is None

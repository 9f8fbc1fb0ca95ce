import datetime as dt
from decimal import Decimal
from unittest.mock import patch

import pytest
import requests
from asgiref.sync import async_to_sync

from apps.aviary.services import Bird, Cage, CustomSpecies, ItemStore, NoteReminder, Transaction
from apps.assistant.services import (
    ExtractionError,
    InferenceClient,
    InferenceError,
    InferenceOverloadedError,
    InvalidImageError,
    analyze_mutations,
    ask_assistant,
    confirm_actions,
    describe_actions,
    identify_bird,
    plan_replay,
)
from apps.assistant.services.assistant import OVERLOADED_MESSAGE, UNAVAILABLE_MESSAGE, snake_keys

from .conftest import FakeInferenceClient, UnreachableRemoteStore, chat_completion

TODAY = dt.date(2024, 6, 1)


def action(kind, **data):
    return {'action': kind, 'data': data}


# =============================================================================
# Inference client
# =============================================================================

class TestInferenceClient:
    """Tests for InferenceClient.complete_json"""

    @pytest.fixture
    def client(self):
        return InferenceClient('http://inference.test/v1/', api_key='k', model='m', timeout=5)

    def test_returns_parsed_object(self, client):
        with patch('apps.assistant.services.inference.requests.post') as post:
            post.return_value = chat_completion({'response': 'Hi'})

            reply = client.complete_json('system', 'hello')

        assert reply == {'response': 'Hi'}
        url = post.call_args.args[0]
        body = post.call_args.kwargs['json']
        assert url == 'http://inference.test/v1/chat/completions'
        assert body['response_format'] == {'type': 'json_object'}
        assert body['messages'][1] == {'role': 'user', 'content': 'hello'}
        assert post.call_args.kwargs['headers']['Authorization'] == 'Bearer k'

    def test_overloaded(self, client):
        with patch('apps.assistant.services.inference.requests.post') as post:
            post.return_value = chat_completion({}, status_code=503)

            with pytest.raises(InferenceOverloadedError):
                client.complete_json('system', 'hello')

    def test_server_error(self, client):
        with patch('apps.assistant.services.inference.requests.post') as post:
            post.return_value = chat_completion({}, status_code=500)

            with pytest.raises(InferenceError):
                client.complete_json('system', 'hello')

    def test_connection_error(self, client):
        with patch(
            'apps.assistant.services.inference.requests.post',
            side_effect=requests.exceptions.ConnectionError('refused'),
        ):
            with pytest.raises(InferenceError):
                client.complete_json('system', 'hello')

    def test_reply_that_is_not_json(self, client):
        with patch('apps.assistant.services.inference.requests.post') as post:
            post.return_value.status_code = 200
            post.return_value.json.return_value = {'choices': [{'message': {'content': 'Sure thing!'}}]}

            with pytest.raises(InferenceError):
                client.complete_json('system', 'hello')


# =============================================================================
# Asking
# =============================================================================

class TestAskAssistant:
    """Tests for ask_assistant"""

    def test_returns_actions_and_summary(self, flock):
        client = FakeInferenceClient({
            'actions': [action('addBird', species='Cockatiel'), action('deleteCage', ids=['c2'])],
            'response': 'I will add a Cockatiel and delete one cage. Confirm?',
        })

        reply = ask_assistant(query='add a cockatiel, remove flight 2', items=flock, client=client)

        assert [a['action'] for a in reply['actions']] == ['addBird', 'deleteCage']
        assert reply['summary'] == ['Add Bird: Cockatiel', 'Delete 1 cage(s)']
        assert 'error' not in reply

    def test_context_contains_the_aviary(self, flock):
        client = FakeInferenceClient({'actions': [], 'response': 'You have one bird.'})

        ask_assistant(query='how many birds?', items=flock, client=client)

        _, content = client.calls[0]
        assert '"how many birds?"' in content
        assert '"ring_number": "A123"' in content

    def test_unknown_actions_are_dropped(self):
        client = FakeInferenceClient({
            'actions': [action('launchRocket'), {'action': 'answer', 'data': None}],
            'response': 'Done',
        })

        reply = ask_assistant(query='hi', items=(), client=client)

        assert reply['actions'] == [{'action': 'answer', 'data': None}]
        assert reply['summary'] == []

    def test_overloaded_model(self):
        client = FakeInferenceClient(error=InferenceOverloadedError('503'))

        reply = ask_assistant(query='hi', items=(), client=client)

        assert reply['actions'] == []
        assert reply['response'] == OVERLOADED_MESSAGE
        assert reply['error'] == '503'

    def test_unreachable_model(self):
        client = FakeInferenceClient(error=InferenceError('timed out'))

        reply = ask_assistant(query='hi', items=(), client=client)

        assert reply['response'] == UNAVAILABLE_MESSAGE

    def test_empty_response(self):
        reply = ask_assistant(query='hi', items=(), client=FakeInferenceClient({'actions': []}))

        assert reply['actions'] == []
        assert 'error' in reply


class TestDescribeActions:
    """Tests for describe_actions"""

    def test_species_without_incubation_period(self):
        assert describe_actions([action('addSpecies', name='Galah')]) == ['Add Species: Incomplete data from AI']

    def test_update_and_transaction(self):
        lines = describe_actions([
            action('updateBird', id='b1', updates={'status': 'Sold'}),
            action('addTransaction', type='income', amount=500),
        ])

        assert lines == ['Update Bird (ID: b1)', 'Add income transaction for R500.00']

    def test_snake_keys(self):
        assert snake_keys({'ringNumber': 'A1', 'cage_name': 'X'}) == {'ring_number': 'A1', 'cage_name': 'X'}


# =============================================================================
# Replay planning
# =============================================================================

class TestPlanReplay:
    """Tests for plan_replay"""

    def test_bird_into_new_cage(self):
        plan = plan_replay([action('addBird', species='Cockatiel', sex='female', cageName='Nursery')], (), today=TODAY)

        bird, cage = plan.inserts
        assert isinstance(bird, Bird)
        assert isinstance(cage, Cage)
        assert cage.name == 'Nursery'
        assert cage.bird_ids == (bird.id,)
        assert plan.summary == ['Added bird: Cockatiel (Unbanded)']

    def test_bird_into_existing_cage_ignores_case(self, flock):
        plan = plan_replay([action('addBird', species='Cockatiel', cage_name='flight 2')], flock, today=TODAY)

        (bird,) = plan.inserts
        assert plan.changes == {'c2': {'id': 'c2', 'bird_ids': (bird.id,)}}

    def test_two_birds_share_a_cage_planned_in_the_same_batch(self):
        plan = plan_replay([
            action('addBird', species='Galah', cage_name='Quarantine'),
            action('addBird', species='Galah', cage_name='Quarantine'),
        ], (), today=TODAY)

        cages = [item for item in plan.inserts if isinstance(item, Cage)]
        assert len(cages) == 1
        assert len(cages[0].bird_ids) == 2

    def test_moving_a_bird_empties_its_old_cage(self, flock):
        plan = plan_replay([action('updateBird', id='b1', updates={'cageName': 'Flight 2'})], flock, today=TODAY)

        assert plan.changes['c1']['bird_ids'] == ()
        assert plan.changes['c2']['bird_ids'] == ('b1',)
        assert 'b1' not in plan.changes

    def test_selling_folds_sale_details(self, flock):
        plan = plan_replay([action('updateBird', id='b1', updates={
            'status': 'Sold', 'salePrice': 500, 'buyerInfo': 'John',
        })], flock, today=TODAY)

        sale = plan.changes['b1']['sale_details']
        assert sale == {'date': TODAY, 'price': 500, 'buyer': 'John'}
        assert 'sale_price' not in plan.changes['b1']

    def test_sale_buyer_defaults_to_unknown(self):
        plan = plan_replay([action('addBird', species='Galah', status='Sold', sale_price=300)], (), today=TODAY)

        assert plan.inserts[0].sale_details.buyer == 'Unknown'
        assert plan.inserts[0].sale_details.price == Decimal('300')

    def test_cages_with_cost_record_expenses(self):
        plan = plan_replay([action('addCage', names=['100', '101'], cost=250)], (), today=TODAY)

        expenses = [item for item in plan.inserts if isinstance(item, Transaction)]
        assert [e.description for e in expenses] == ['Purchase of cage: 100', 'Purchase of cage: 101']
        assert all(e.amount == Decimal('250') and e.date == TODAY for e in expenses)
        assert plan.summary == ['Added 2 cage(s)']

    def test_free_cages_record_nothing(self):
        plan = plan_replay([action('addCage', names=['A'])], (), today=TODAY)

        assert [type(item) for item in plan.inserts] == [Cage]

    def test_species_needs_incubation_period(self):
        plan = plan_replay([action('addSpecies', name='Galah')], (), today=TODAY)

        assert plan.inserts == []
        assert plan.skipped == ['Cannot add species without a name and incubation period.']

    def test_species(self):
        plan = plan_replay([action('addSpecies', name='Galah', incubationPeriod=24)], (), today=TODAY)

        (species,) = plan.inserts
        assert isinstance(species, CustomSpecies)
        assert species.incubation_period == 24

    def test_transaction_defaults_to_today(self):
        plan = plan_replay([action('addTransaction', type='expense', description='Seed', amount=80)], (), today=TODAY)

        assert plan.inserts[0].date == TODAY

    def test_delete_checks_category(self, flock):
        plan = plan_replay([action('deleteBird', ids=['b1', 'c1', 'zz'])], flock, today=TODAY)

        assert plan.deletes == ['b1']
        assert len(plan.skipped) == 2

    def test_update_of_unknown_item_is_skipped(self, flock):
        plan = plan_replay([action('updateNote', id='b1', updates={'title': 'x'})], flock, today=TODAY)

        assert plan.changes == {}
        assert plan.skipped

    def test_invalid_fields_are_skipped(self, flock):
        plan = plan_replay([
            action('updateBird', id='b1', updates={'wingspan': 30}),
            action('addNote', title='Vet visit', isReminder=True, reminderDate='2024-06-10'),
        ], flock, today=TODAY)

        assert plan.changes == {}
        assert len(plan.skipped) == 1
        (note,) = plan.inserts
        assert isinstance(note, NoteReminder)
        assert note.reminder_date == dt.date(2024, 6, 10)

    def test_display_only_actions_change_nothing(self):
        plan = plan_replay([{'action': 'answer', 'data': None}, action('geneticsResult', outcomes=[])], ())

        assert (plan.inserts, plan.changes, plan.deletes, plan.skipped) == ([], {}, [], [])


# =============================================================================
# Confirming
# =============================================================================

class TestConfirmActions:
    """Tests for confirm_actions"""

    def test_applies_adds_updates_and_deletes(self, flock):
        store = ItemStore(flock)
        actions = [
            action('addBird', species='Cockatiel', cage_name='Flight 2'),
            action('updateBird', id='b1', updates={'status': 'Deceased'}),
            action('deleteCage', ids=['c1']),
        ]

        result = async_to_sync(confirm_actions)(store=store, actions=actions, today=TODAY)

        assert result['ok']
        assert result['message'] == 'Added bird: Cockatiel (Unbanded), Updated bird ID b1, Deleted 1 item(s).'
        assert store.get('c1') is None
        assert store.get('b1').status == 'Deceased'
        (new_bird,) = [item for item in store.of_category('Bird') if item.id != 'b1']
        assert store.get('c2').bird_ids == (new_bird.id,)

    def test_deleting_a_bird_cascades(self, flock):
        store = ItemStore(flock)

        async_to_sync(confirm_actions)(store=store, actions=[action('deleteBird', ids=['b1'])])

        assert store.get('c1').bird_ids == ()

    def test_nothing_to_do(self):
        result = async_to_sync(confirm_actions)(store=ItemStore(), actions=[{'action': 'answer', 'data': None}])

        assert result['ok']
        assert result['message'] == 'No actions were taken.'

    def test_stops_at_remote_failure(self, flock):
        store = ItemStore(flock, remote=UnreachableRemoteStore())

        result = async_to_sync(confirm_actions)(store=store, actions=[
            action('addCage', names=['New']),
            action('deleteBird', ids=['b1']),
        ])

        assert not result['ok']
        assert result['errors'] == ['database is down']
        assert store.snapshot() == flock


# =============================================================================
# Mutation analysis
# =============================================================================

class TestAnalyzeMutations:
    """Tests for analyze_mutations"""

    def test_keeps_known_inheritance_patterns(self):
        client = FakeInferenceClient({'mutations': [
            {'name': 'Lutino', 'inheritance': 'Sex-Linked Recessive'},
            {'name': 'Mystery', 'inheritance': 'Mitochondrial'},
        ]})
        with patch('apps.assistant.services.mutation_analysis.extract_document_text', return_value='Lutino is...'):
            result = analyze_mutations(document_url='http://docs.test/a.pdf', client=client)

        assert result == {'mutations': [{'name': 'Lutino', 'inheritance': 'Sex-Linked Recessive'}]}

    def test_empty_document(self):
        client = FakeInferenceClient()
        with patch('apps.assistant.services.mutation_analysis.extract_document_text', return_value='   '):
            result = analyze_mutations(document_url='http://docs.test/a.pdf', client=client)

        assert result == {'mutations': [], 'error': 'The document appears to be empty or contains no readable text.'}
        assert client.calls == []

    def test_extraction_failure(self):
        with patch(
            'apps.assistant.services.mutation_analysis.extract_document_text',
            side_effect=ExtractionError('404'),
        ):
            result = analyze_mutations(document_url='http://docs.test/a.pdf', client=FakeInferenceClient())

        assert result['mutations'] == []
        assert result['error'] == 'An error occurred during document analysis: 404'

    def test_unconfigured_extraction(self, settings):
        settings.DOCUMENT_EXTRACTION_URL = ''

        result = analyze_mutations(document_url='http://docs.test/a.pdf', client=FakeInferenceClient())

        assert 'not configured' in result['error']


# =============================================================================
# Identification
# =============================================================================

PHOTO = 'data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ=='


class TestIdentifyBird:
    """Tests for identify_bird"""

    def test_sends_photo_and_notes(self):
        client = FakeInferenceClient({
            'is_bird': True,
            'common_name': 'Budgerigar',
            'latin_name': 'Melopsittacus undulatus',
            'confidence': 1.4,
            'potential_mutations': ['Opaline'],
        })

        result = identify_bird(photo_data_uri=PHOTO, user_description='small, green', client=client)

        _, content = client.calls[0]
        assert content[0]['text'] == "User's notes: small, green"
        assert content[1] == {'type': 'image_url', 'image_url': {'url': PHOTO}}
        assert result['confidence'] == 1.0
        assert result['potential_mutations'] == ['Opaline']
        assert result['interesting_fact'] == ''

    def test_rejects_non_image(self):
        with pytest.raises(InvalidImageError):
            identify_bird(photo_data_uri='data:text/plain;base64,aGVsbG8=', client=FakeInferenceClient())

    def test_reply_without_verdict(self):
        with pytest.raises(InferenceError):
            identify_bird(photo_data_uri=PHOTO, client=FakeInferenceClient({'common_name': 'Crow'}))

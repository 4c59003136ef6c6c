import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import delete, func, select

from rfid_print_service.config import PRINT_THEN_PERSIST
from rfid_print_service.errors import NotFoundError, ValidationError, TransmissionError
from rfid_print_service.models import DestinyExtras, IdCounter, LabelRecord, QualityExtras
from rfid_print_service.models import job as states
from rfid_print_service.services import LabelWorkflow, current_max


def count(db, model):
    with db.session() as session:
        return session.scalar(select(func.count()).select_from(model))


def counter(db, name):
    with db.session() as session:
        return current_max(session, name)


def test_submit_bioflex_persists_record(workflow, db, make_label, transport):
    job, result = workflow.submit('BIOFLEX', make_label())

    assert job.status == states.COMPLETED
    assert job.history == [
        states.RECEIVED, states.NORMALIZED, states.DUPLICATE_CHECKED,
        states.PERSISTED, states.COMPLETED,
    ]
    assert result['record']['traceability'] == 'TRZ-0001'
    assert result['record']['label_class'] == 'BIOFLEX'
    assert result['extras'] is None
    assert count(db, LabelRecord) == 1
    assert counter(db, 'BIOFLEX') == 0
    assert transport.sent == []


def test_label_class_is_case_insensitive(workflow, make_label):
    job, _ = workflow.submit('bioflex', make_label())
    assert job.label_class == 'BIOFLEX'


def test_destiny_end_to_end(workflow, db, make_label, destiny_extras, transport):
    prior = counter(db, 'DESTINY')

    job, result = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert job.status == states.COMPLETED
    assert job.history == [
        states.RECEIVED, states.NORMALIZED, states.DUPLICATE_CHECKED, states.PERSISTED,
        states.ID_ALLOCATED, states.EXTRAS_PERSISTED, states.RENDERED, states.TRANSMITTED,
        states.COMPLETED,
    ]
    assert job.extras_id == prior + 1
    assert result['extras']['id'] == prior + 1
    assert result['extras']['pallet_id'] == 'PAL001'
    assert counter(db, 'DESTINY') == prior + 1

    assert len(transport.sent) == 1
    name, command = transport.sent[0]
    assert name == 'line-1'
    for value in ('^FD12^FS', '^FDCASE^FS', '^FDL2024-07^FS', '^FDPAL001^FS'):
        assert value in command
    assert transport.timeouts == [2]
    assert job.bytes_sent == len(command.encode('utf-8'))


def test_quality_allocates_from_its_own_counter(workflow, db, make_label, quality_extras):
    workflow.print_label('DESTINY', make_label(traceability='T-1', extras={'pallet_id': 'P'}), 'line-1')
    job, result = workflow.print_label('QUALITY', make_label(traceability='T-2', extras=quality_extras), 'line-1')

    assert result['extras']['id'] == 1
    assert counter(db, 'QUALITY') == 1
    assert count(db, QualityExtras) == 1


def test_duplicate_traceability_reuses_first_record(workflow, db, make_label, destiny_extras, transport):
    first, _ = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')
    second, result = workflow.print_label(
        'DESTINY',
        make_label(product_name='Otro producto', extras=dict(destiny_extras, pallet_id='PAL999')),
        'line-1',
    )

    assert second.status == states.COMPLETED
    assert second.duplicate is True
    assert states.PERSISTED not in second.history
    assert second.record_id == first.record_id
    assert second.extras_id == first.extras_id
    assert result['record']['product_name'] == 'Película stretch'

    assert count(db, LabelRecord) == 1
    assert count(db, DestinyExtras) == 1
    assert counter(db, 'DESTINY') == 1

    assert len(transport.sent) == 2
    command = transport.sent[1][1]
    assert 'Pelicula stretch' in command
    assert 'Otro producto' not in command
    assert 'PAL999' not in command


def test_duplicate_without_extras_gets_extras(workflow, db, make_label, destiny_extras):
    workflow.submit('BIOFLEX', make_label())
    job, result = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert job.duplicate is True
    assert result['extras']['id'] == 1
    assert result['extras']['label_record_id'] == job.record_id


def test_concurrent_duplicates_reuse_one_record(workflow, db, make_label):
    calls = 4
    barrier = threading.Barrier(calls)

    def submit(_):
        barrier.wait(5)
        job, result = workflow.submit('BIOFLEX', make_label())
        return job, result

    with ThreadPoolExecutor(max_workers=calls) as pool:
        outcomes = list(pool.map(submit, range(calls)))

    jobs = [job for job, _ in outcomes]
    assert all(job.status == states.COMPLETED for job in jobs)
    assert sorted(job.duplicate for job in jobs) == [False, True, True, True]
    assert len({job.record_id for job in jobs}) == 1
    assert all(result['record']['traceability'] == 'TRZ-0001' for _, result in outcomes)
    assert count(db, LabelRecord) == 1


def test_insert_conflict_takes_duplicate_path(workflow, db, make_label, destiny_extras, monkeypatch):
    first, _ = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    lookup = LabelWorkflow._find_record
    calls = []

    def stale_lookup(session, traceability):
        calls.append(traceability)
        if len(calls) == 1:
            return None
        return lookup(session, traceability)

    monkeypatch.setattr(LabelWorkflow, '_find_record', staticmethod(stale_lookup))

    job, result = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert len(calls) == 2
    assert job.status == states.COMPLETED
    assert job.duplicate is True
    assert states.PERSISTED not in job.history
    assert job.record_id == first.record_id
    assert result['extras']['id'] == first.extras_id
    assert count(db, LabelRecord) == 1
    assert counter(db, 'DESTINY') == 1


def test_missing_bioflex_counter_persists_nothing(workflow, db, make_label):
    with db.session() as session:
        session.execute(delete(IdCounter).where(IdCounter.label_class == 'BIOFLEX'))

    with pytest.raises(NotFoundError) as exc_info:
        workflow.submit('BIOFLEX', make_label())

    assert exc_info.value.job.status == states.FAILED
    assert count(db, LabelRecord) == 0


def test_missing_destiny_counter_persists_nothing(workflow, db, make_label, destiny_extras):
    with db.session() as session:
        session.execute(delete(IdCounter).where(IdCounter.label_class == 'DESTINY'))

    with pytest.raises(NotFoundError):
        workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert count(db, LabelRecord) == 0
    assert count(db, DestinyExtras) == 0


def test_persist_then_print_keeps_records_on_transmit_failure(workflow, db, make_label,
                                                              destiny_extras, transport):
    transport.fail = True

    with pytest.raises(TransmissionError) as exc_info:
        workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    job = exc_info.value.job
    assert job.status == states.FAILED
    assert job.history[-2] == states.RENDERED
    assert 'Connection refused' in job.error_message
    assert count(db, LabelRecord) == 1
    assert count(db, DestinyExtras) == 1
    assert counter(db, 'DESTINY') == 1


def test_print_then_persist_rolls_back_on_transmit_failure(db, destinations, transport,
                                                           make_label, destiny_extras):
    workflow = LabelWorkflow(db, destinations, policy=PRINT_THEN_PERSIST, handler_factory=transport)
    transport.fail = True

    with pytest.raises(TransmissionError):
        workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert count(db, LabelRecord) == 0
    assert count(db, DestinyExtras) == 0
    assert counter(db, 'DESTINY') == 0


def test_print_then_persist_commits_on_success(db, destinations, transport,
                                               make_label, destiny_extras):
    workflow = LabelWorkflow(db, destinations, policy=PRINT_THEN_PERSIST, handler_factory=transport)

    job, result = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1')

    assert job.status == states.COMPLETED
    assert result['extras']['id'] == 1
    assert count(db, LabelRecord) == 1
    assert len(transport.sent) == 1


def test_print_without_persisting(workflow, db, make_label, destiny_extras, transport):
    job, result = workflow.print_label(
        'DESTINY', make_label(extras=destiny_extras), 'line-1', persist=False
    )

    assert job.status == states.COMPLETED
    assert job.history == [
        states.RECEIVED, states.NORMALIZED, states.RENDERED, states.TRANSMITTED, states.COMPLETED,
    ]
    assert result == {'record': None, 'extras': None}
    assert count(db, LabelRecord) == 0
    assert counter(db, 'DESTINY') == 0
    assert '^FDPAL001^FS' in transport.sent[0][1]


def test_layout_override(workflow, make_label, destiny_extras, transport):
    job, _ = workflow.print_label('DESTINY', make_label(extras=destiny_extras), 'line-1', layout='rfid')

    command = transport.sent[0][1]
    assert job.layout == 'rfid'
    assert '^FO900,550^BQN,2,4^FDQA,000TRZ-0001' in command
    assert 'PAL001' not in command


def test_preview_does_not_persist_or_send(workflow, db, make_label, transport):
    command = workflow.preview('BIOFLEX', make_label())

    assert command.startswith('^XA')
    assert '^FDTRZ-0001^FS' in command
    assert count(db, LabelRecord) == 0
    assert transport.sent == []


@pytest.mark.parametrize('missing', ['area', 'traceability', 'rfid', 'operator_name'])
def test_missing_required_field(workflow, db, make_label, missing):
    data = make_label()
    del data[missing]

    with pytest.raises(ValidationError) as exc_info:
        workflow.submit('BIOFLEX', data)

    assert missing in exc_info.value.message
    assert count(db, LabelRecord) == 0


def test_extras_required_for_destiny(workflow, make_label):
    with pytest.raises(ValidationError):
        workflow.print_label('DESTINY', make_label(), 'line-1')


def test_malformed_weight(workflow, make_label):
    with pytest.raises(ValidationError):
        workflow.submit('BIOFLEX', make_label(gross_weight='heavy'))


def test_unknown_label_class(workflow, make_label):
    with pytest.raises(NotFoundError):
        workflow.submit('PLATINUM', make_label())


def test_unknown_destination(workflow, db, make_label, transport):
    with pytest.raises(NotFoundError):
        workflow.print_label('BIOFLEX', make_label(), 'line-9')
    assert count(db, LabelRecord) == 0


def test_destination_required(workflow, make_label):
    with pytest.raises(ValidationError):
        workflow.print_label('BIOFLEX', make_label(), None)


def test_print_simple(workflow, transport):
    job = workflow.print_simple('Año nuevo', 'usb-1', x=100, y=200)

    assert job.status == states.COMPLETED
    assert transport.sent == [('usb-1', '^XA\n^FO100,200^A0N,50,50^FDAno nuevo^FS\n^XZ\n')]


def test_send_raw(workflow, transport):
    result = workflow.send_raw('line-1', '~HS')
    assert result['success'] is True
    assert transport.sent == [('line-1', '~HS')]

    with pytest.raises(ValidationError):
        workflow.send_raw('line-1', '  ')


def test_invalid_policy(db, destinations):
    with pytest.raises(ValueError):
        LabelWorkflow(db, destinations, policy='print-maybe')

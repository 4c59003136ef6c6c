import io

import pytest
from openpyxl import load_workbook

from rfid_print_service.app import create_app, EXTENSION_KEY
from rfid_print_service.models import Order


def upload(content):
    return {'file': (io.BytesIO(content), 'rfids.txt')}


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    data = response.get_json()
    assert data['status'] == 'online'
    assert data['database'] == 'ok'
    assert data['destinations_configured'] == 2
    assert data['atomicity_policy'] == 'persist-then-print'


def test_api_info(client):
    data = client.get('/api').get_json()
    assert data['label_classes'] == ['BIOFLEX', 'DESTINY', 'QUALITY']


def test_submit_and_list(client, make_label):
    response = client.post('/api/labels/BIOFLEX', json=make_label())
    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['record']['traceability'] == 'TRZ-0001'
    assert data['job']['status'] == 'completed'

    labels = client.get('/api/labels/bioflex').get_json()
    assert labels['count'] == 1
    assert labels['labels'][0]['uom'] == 'ROLLOS'
    assert 'extras' not in labels['labels'][0]


def test_list_joins_extras(client, make_label, destiny_extras):
    client.post('/api/labels/DESTINY/print?destination=line-1', json=make_label(extras=destiny_extras))

    labels = client.get('/api/labels/DESTINY').get_json()['labels']
    assert len(labels) == 1
    assert labels[0]['extras']['pallet_id'] == 'PAL001'
    assert labels[0]['extras']['id'] == 1


def test_list_is_per_class(client, make_label):
    client.post('/api/labels/BIOFLEX', json=make_label())
    assert client.get('/api/labels/QUALITY').get_json()['count'] == 0


def test_list_includes_records_reused_by_another_class(client, make_label, destiny_extras, quality_extras):
    client.post('/api/labels/DESTINY', json=make_label(extras=destiny_extras))
    response = client.post('/api/labels/QUALITY', json=make_label(extras=quality_extras))
    assert response.get_json()['extras']['id'] == 1

    labels = client.get('/api/labels/QUALITY').get_json()['labels']
    assert len(labels) == 1
    assert labels[0]['traceability'] == 'TRZ-0001'
    assert labels[0]['extras']['customer_name'] == 'Distribuidora Ñuñoa'

    destiny = client.get('/api/labels/DESTINY').get_json()['labels']
    assert len(destiny) == 1
    assert destiny[0]['extras']['pallet_id'] == 'PAL001'
    assert client.get('/api/labels/BIOFLEX').get_json()['count'] == 0

    response = client.put('/api/labels/QUALITY', json=make_label(product_name='Bolsa'))
    assert response.status_code == 200


def test_print(client, make_label, destiny_extras, transport):
    response = client.post(
        '/api/labels/DESTINY/print?destination=line-1', json=make_label(extras=destiny_extras)
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data['job']['status'] == 'completed'
    assert data['job']['destination'] == 'line-1'
    assert data['extras']['id'] == 1
    assert '^FDPAL001^FS' in transport.sent[0][1]


def test_print_only(client, app_db, make_label, transport):
    response = client.post('/api/labels/BIOFLEX/print?destination=line-1&persist=false', json=make_label())
    assert response.status_code == 200
    assert response.get_json()['record'] is None
    assert len(transport.sent) == 1
    assert client.get('/api/labels/BIOFLEX').get_json()['count'] == 0


def test_print_transmit_failure(client, make_label, transport):
    transport.fail = True

    response = client.post('/api/labels/BIOFLEX/print?destination=line-1', json=make_label())
    assert response.status_code == 500
    data = response.get_json()
    assert data['success'] is False
    assert 'line-1' in data['error']
    assert data['job']['status'] == 'failed'
    # persist-then-print: the record stays
    assert client.get('/api/labels/BIOFLEX').get_json()['count'] == 1


def test_print_unknown_destination(client, make_label):
    response = client.post('/api/labels/BIOFLEX/print?destination=nowhere', json=make_label())
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': "Destination 'nowhere' not found"}


def test_print_missing_destination(client, make_label):
    response = client.post('/api/labels/BIOFLEX/print', json=make_label())
    assert response.status_code == 400


def test_unknown_label_class(client, make_label):
    response = client.post('/api/labels/GOLD', json=make_label())
    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_missing_body(client):
    response = client.post('/api/labels/BIOFLEX')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Request body required'


def test_body_must_be_object(client):
    response = client.post('/api/labels/BIOFLEX', json=[1, 2])
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Request body must be a JSON object'

    assert client.put('/api/labels/BIOFLEX', json=['x']).status_code == 400
    assert client.post('/api/labels/BIOFLEX/render', json='text').status_code == 400
    assert client.post('/api/print/simple', json=[1]).status_code == 400


def test_validation_error(client, make_label):
    data = make_label()
    del data['rfid']
    response = client.post('/api/labels/BIOFLEX', json=data)
    assert response.status_code == 400
    assert 'rfid' in response.get_json()['error']


def test_render_preview(client, make_label):
    response = client.post('/api/labels/BIOFLEX/render', json=make_label())
    assert response.status_code == 200
    command = response.get_json()['command']
    assert command.startswith('^XA\n')
    assert client.get('/api/labels/BIOFLEX').get_json()['count'] == 0


def test_render_unknown_layout(client, make_label):
    response = client.post('/api/labels/BIOFLEX/render?layout=poster', json=make_label())
    assert response.status_code == 404


def test_update_by_rfid(client, make_label):
    client.post('/api/labels/BIOFLEX', json=make_label())

    response = client.put('/api/labels/BIOFLEX', json=make_label(product_name='Bolsa', gross_weight=610))
    assert response.status_code == 200
    record = response.get_json()['record']
    assert record['product_name'] == 'Bolsa'
    assert record['gross_weight'] == 610

    labels = client.get('/api/labels/BIOFLEX').get_json()['labels']
    assert len(labels) == 1
    assert labels[0]['product_name'] == 'Bolsa'


def test_update_keeps_timestamp(client, make_label):
    client.post('/api/labels/BIOFLEX', json=make_label())

    data = make_label(product_name='Bolsa')
    del data['timestamp']
    record = client.put('/api/labels/BIOFLEX', json=data).get_json()['record']
    assert record['timestamp'] == '2024-07-15T08:30:00'

    labels = client.get('/api/labels/BIOFLEX').get_json()['labels']
    assert labels[0]['timestamp'] == '2024-07-15T08:30:00'
    assert labels[0]['product_name'] == 'Bolsa'

    record = client.put('/api/labels/BIOFLEX', json=make_label(timestamp='2024-07-16T09:00:00')).get_json()['record']
    assert record['timestamp'] == '2024-07-16T09:00:00'


def test_update_unknown_rfid(client, make_label):
    response = client.put('/api/labels/BIOFLEX', json=make_label(rfid='FFFF'))
    assert response.status_code == 404


def test_batch_lookup(client, make_label):
    client.post('/api/labels/BIOFLEX', json=make_label(traceability='T-1', rfid='AAA1'))
    client.post('/api/labels/BIOFLEX', json=make_label(traceability='T-2', rfid='BBB2'))
    client.post('/api/labels/BIOFLEX', json=make_label(traceability='T-3', rfid='CCC3'))

    response = client.post(
        '/api/labels/batch-lookup',
        data=upload(b'AAA1\r\n\nCCC3\nZZZ9\n'),
        content_type='multipart/form-data',
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data['count'] == 2
    assert [label['rfid'] for label in data['labels']] == ['AAA1', 'CCC3']


def test_batch_lookup_requires_file(client):
    response = client.post('/api/labels/batch-lookup', data={}, content_type='multipart/form-data')
    assert response.status_code == 400


def test_batch_lookup_empty_file(client):
    response = client.post(
        '/api/labels/batch-lookup', data=upload(b'\n\n'), content_type='multipart/form-data'
    )
    assert response.status_code == 400


def test_batch_lookup_xlsx(client, make_label):
    client.post('/api/labels/BIOFLEX', json=make_label(uom=None))

    response = client.post(
        '/api/labels/batch-lookup/xlsx',
        data=upload(b'E28011606000\n'),
        content_type='multipart/form-data',
    )
    assert response.status_code == 200
    assert response.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    assert 'RFIDLabels.xlsx' in response.headers['Content-Disposition']

    workbook = load_workbook(io.BytesIO(response.data))
    sheet = workbook['RFID Labels']
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0][0] == 'Area'
    assert rows[1][0] == 'Extrusión'
    assert rows[1][12] == 'E28011606000'
    assert len(rows) == 2


def test_list_printers(client):
    data = client.get('/api/printers').get_json()
    assert data['count'] == 2
    assert data['printers'][0]['name'] == 'line-1'
    assert data['printers'][0]['address'] == '127.0.0.1:9100'
    assert data['printers'][1]['connection_mode'] == 'usb'


def test_printer_status_and_test(client):
    assert client.get('/api/printers/line-1/status').get_json()['status'] == 'ready'
    assert client.post('/api/printers/line-1/test').get_json()['success'] is True
    assert client.get('/api/printers/nope/status').status_code == 404


def test_send_raw(client, transport):
    response = client.post('/api/printers/line-1/raw', json={'command': '^XA^FO10,10^FDX^FS^XZ'})
    assert response.status_code == 200
    assert transport.sent == [('line-1', '^XA^FO10,10^FDX^FS^XZ')]

    response = client.post('/api/printers/usb-1/raw', data='~HS', content_type='text/plain')
    assert response.status_code == 200
    assert transport.sent[-1] == ('usb-1', '~HS')


def test_send_raw_requires_command(client):
    response = client.post('/api/printers/line-1/raw', json={})
    assert response.status_code == 400


def test_print_simple(client, transport):
    response = client.post('/api/print/simple', json={'destination': 'line-1', 'text': 'Prueba', 'x': 80})
    assert response.status_code == 200
    assert transport.sent == [('line-1', '^XA\n^FO80,50^A0N,50,50^FDPrueba^FS\n^XZ\n')]


def test_print_simple_bad_coordinates(client):
    response = client.post('/api/print/simple', json={'destination': 'line-1', 'text': 'x', 'x': 'left'})
    assert response.status_code == 400


def test_usb_devices(client, monkeypatch):
    monkeypatch.setattr(
        'rfid_print_service.app.list_usb_devices',
        lambda: [{'name': 'lp0', 'device': '/dev/usb/lp0', 'is_sato': None}],
    )
    data = client.get('/api/devices/usb').get_json()
    assert data['count'] == 1
    assert data['devices'][0]['device'] == '/dev/usb/lp0'


def test_orders(client, app_db):
    with app_db.session() as session:
        session.add_all([
            Order(order_number='OT-1', product_code='P-1', product_name='Film', last_process='EXTRUSION'),
            Order(order_number='OT-2', product_code='P-2', product_name='Bolsa', last_process='IMPRESION'),
            Order(order_number='OT-3', product_code=None, product_name=None, last_process='EXTRUSION'),
        ])

    assert client.get('/api/orders').get_json()['count'] == 3

    orders = client.get('/api/orders/EXTRUSION').get_json()['orders']
    assert [o['order_number'] for o in orders] == ['OT-1', 'OT-3']
    assert orders[1]['product_code'] == ''


def test_not_found_route(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json()['success'] is False


@pytest.mark.parametrize('expose, message', [(True, 'catalog offline'), (False, 'Internal server error')])
def test_unexpected_error(database_url, destinations, transport, monkeypatch, expose, message):
    def broken(db, last_process=None):
        raise RuntimeError('catalog offline')

    monkeypatch.setattr('rfid_print_service.app.list_orders', broken)
    app = create_app(
        database_url=database_url, destinations=destinations, handler_factory=transport,
        expose_error_detail=expose,
    )
    try:
        response = app.test_client().get('/api/orders')
    finally:
        app.extensions[EXTENSION_KEY]['db'].dispose()

    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'error': message}

"""
Label Layouts
=============

Fixed placard templates. Coordinates and box sizes are in printer dots for a
1200 x 900 label; only the field payloads change between calls.

Every layout takes the prepared field mapping (see render.prepare_fields) and
returns the list of instructions between ^XA and ^XZ.
"""

from typing import Dict, List, Optional

from .commands import box, text, barcode128, qr_code, rfid_write, graphic_field

# Form control footer printed on the generic RFID placard
FORM_DATE = '11-06-2024'
FORM_REVISION = '01'


def qr_digest(f: Dict[str, str]) -> str:
    """Human readable summary scanned by the warehouse tooling, field order matters."""
    return (
        f"000{f['traceability']} - OT y/o lote: {f['order']}, "
        f"Producto: {f['product_code']} - {f['product_name']}, "
        f"Clave Producto: {f['product_code']}, "
        f"Peso bruto: {f['gross_weight']}, Peso neto: {f['net_weight']}, "
        f"Peso Tarima: {f['tare_weight']}, "
        f"#Piezas (rollos, bultos, cajas): {f['pieces']}, "
        f"Área: {f['area']}, Fecha: {f['date']}, "
        f"Operador: {f['operator_name']}, Turno: {f['shift']}"
    )


def rfid_placard(f: Dict[str, str], extras: Optional[Dict[str, str]] = None,
                 logo: Optional[bytes] = None) -> List[str]:
    """Generic finished-goods pallet placard with EPC encoding."""
    lines = []
    if logo:
        lines.append(graphic_field(70, 50, logo))

    lines += [
        box(40, 40, 1160, 820),
        box(40, 40, 500, 80),
        box(537, 40, 663, 80),
        text(550, 70, 30, 30, 'PRODUCTO TERMINADO TARIMA'),
        # Row 2: area / date
        box(40, 115, 500, 80),
        text(60, 145, 30, 30, 'AREA'),
        box(40, 115, 250, 80),
        text(300, 145, 30, 30, f['area']),
        box(535, 115, 665, 80),
        box(535, 115, 330, 80),
        text(550, 145, 30, 30, 'FECHA'),
        text(880, 145, 30, 30, f['date']),
        # Row 3: product
        box(40, 190, 250, 80),
        text(60, 215, 30, 30, 'PRODUCTO'),
        box(285, 190, 915, 80),
        text(300, 215, 30, 30, f"{f['product_code']} / {f['product_name']}"),
        # Row 4: operator / shift
        box(40, 265, 250, 80),
        text(60, 295, 30, 22, 'EMPACADORA/TURNO'),
        box(285, 265, 915, 80),
        text(300, 295, 30, 30, f"{f['operator_name']} / {f['shift']}"),
        # Row 5: weights
        box(40, 340, 500, 100),
        text(60, 375, 30, 30, 'PESO BRUTO(KG)'),
        box(40, 340, 250, 100),
        text(300, 375, 50, 50, f['gross_weight']),
        box(535, 340, 665, 100),
        box(535, 340, 330, 100),
        text(550, 375, 30, 30, 'PESO NETO(KG)'),
        text(880, 375, 50, 50, f['net_weight']),
        # Row 6: tare / pieces
        box(40, 435, 500, 100),
        text(60, 470, 30, 27, 'PESO TARIMA(KG)'),
        box(40, 435, 250, 100),
        text(300, 470, 50, 50, f['tare_weight']),
        box(535, 435, 665, 100),
        box(535, 435, 330, 100),
        text(550, 470, 30, 27, f['uom']),
        text(880, 470, 50, 50, f['pieces']),
        # Row 7: traceability
        box(40, 530, 250, 125),
        text(60, 565, 30, 27, 'CODIGO DE'),
        text(60, 595, 30, 27, 'TRAZABILIDAD'),
        box(285, 530, 580, 125),
        text(300, 595, 50, 50, f['traceability']),
        # Row 8: order
        box(40, 650, 250, 150),
        text(60, 710, 30, 27, 'OT Y/O LOTE'),
        box(285, 650, 580, 150),
        text(300, 710, 50, 50, f['order']),
        # Footer
        box(40, 795, 250, 65),
        text(60, 815, 30, 27, f'FECHA:{FORM_DATE}'),
        box(285, 795, 580, 65),
        text(300, 815, 27, 27, f'REVISION: {FORM_REVISION}'),
        rfid_write(f['rfid']),
        qr_code(900, 550, 4, qr_digest(f)),
    ]
    return lines


def destiny_placard(f: Dict[str, str], extras: Optional[Dict[str, str]] = None,
                    logo: Optional[bytes] = None) -> List[str]:
    """Shipping pallet placard for the Destiny customer."""
    e = extras or {}
    return [
        box(40, 40, 1160, 820),
        # Top row
        box(40, 40, 400, 105),
        text(90, 79, 40, 40, 'PALLET PLACARD'),
        box(435, 40, 380, 105),
        text(475, 59, 25, 25, 'SHIPPING UNITS/PALLET'),
        text(590, 89, 50, 50, e.get('shipping_units', '')),
        box(812, 40, 385, 105),
        text(940, 89, 45, 45, 'CASES'),
        text(870, 59, 25, 25, e.get('uom', '')),
        # Lot / eaches
        box(40, 140, 400, 105),
        text(55, 153, 25, 25, 'INVENTORY LOT'),
        text(175, 190, 45, 45, e.get('inventory_lot', '')),
        box(435, 140, 760, 105),
        text(475, 153, 25, 25, 'QTY/UOM (EACHES)'),
        text(725, 190, 45, 45, e.get('individual_units', '')),
        # Pallet id / customer PO
        box(40, 240, 400, 100),
        text(55, 253, 25, 25, 'PALLET ID'),
        text(175, 290, 45, 45, e.get('pallet_id', '')),
        text(55, 353, 25, 25, 'CUSTOMER PO'),
        text(175, 390, 45, 45, e.get('customer_po', '')),
        text(475, 253, 25, 25, 'TOTAL QTY/PALLET (EACHES)'),
        barcode128(685, 310, 65, e.get('pallet_id', '')),
        box(40, 335, 400, 100),
        # Item
        text(55, 445, 25, 25, 'ITEM DESCRIPTION'),
        text(235, 475, 45, 45, e.get('product_description', '')),
        box(435, 239, 765, 196),
        text(55, 545, 25, 25, 'ITEM #'),
        barcode128(95, 580, 65, e.get('item_number', '')),
        box(40, 430, 1160, 100),
        # Weights
        text(95, 720, 25, 25, 'GROSS WEIGHT'),
        text(125, 770, 65, 65, f['gross_weight']),
        text(425, 720, 25, 25, 'NET WEIGHT'),
        text(445, 770, 65, 65, f['net_weight']),
        box(40, 523, 715, 170),
        box(40, 688, 715, 170),
        qr_code(838, 545, 4, qr_digest(f)),
        rfid_write(f['rfid']),
    ]


def quality_placard(f: Dict[str, str], extras: Optional[Dict[str, str]] = None,
                    logo: Optional[bytes] = None) -> List[str]:
    """Quality hold placard; item, lot and quantity are also scannable."""
    e = extras or {}
    lines = []
    if logo:
        lines.append(graphic_field(410, 34, logo))

    lines += [
        box(40, 40, 1160, 820),
        box(40, 200, 1160, 70),
        text(55, 230, 25, 25, 'CUSTOMER :'),
        text(235, 225, 35, 35, e.get('customer_name', '')),
        text(55, 300, 25, 25, 'ITEM: '),
        text(235, 290, 35, 35, e.get('item_description', '')),
        # Item number
        box(40, 330, 570, 371),
        text(55, 360, 25, 25, 'QPS ITEM # '),
        qr_code(230, 410, 10, e.get('item_number', '')),
        text(280, 650, 33, 33, e.get('item_number', '')),
        # Lot
        box(604, 330, 595, 180),
        text(620, 360, 25, 25, 'LOT: '),
        qr_code(850, 340, 5, e.get('inventory_lot', '')),
        text(855, 470, 33, 33, e.get('inventory_lot', '')),
        # Total eaches
        text(620, 520, 25, 25, 'Total Qty/Pallet (Eaches)'),
        qr_code(850, 540, 5, e.get('total_units', '')),
        text(860, 665, 33, 33, e.get('total_units', '')),
        # Traceability
        box(40, 695, 1160, 75),
        text(55, 720, 25, 25, 'Traceability code:'),
        text(240, 715, 35, 35, e.get('traceability_reference', '')),
        # Weights
        box(40, 764, 580, 96),
        text(55, 780, 25, 25, 'GROSS WEIGHT: '),
        text(630, 780, 25, 25, 'NET WEIGHT: '),
        text(300, 790, 60, 60, f['gross_weight']),
        text(850, 790, 60, 60, f['net_weight']),
        rfid_write(f['rfid']),
    ]
    return lines


def simple_label(f: Dict[str, str], extras: Optional[Dict[str, str]] = None,
                 logo: Optional[bytes] = None) -> List[str]:
    """Single line of text."""
    return [text(f.get('x', '50'), f.get('y', '50'), 50, 50, f.get('text', ''))]


LAYOUTS = {
    'rfid': rfid_placard,
    'destiny': destiny_placard,
    'quality': quality_placard,
    'simple': simple_label,
}

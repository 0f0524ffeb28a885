"""
Plain-text thermal receipt rendering.
"""
from kasir.core.clock import store_zone
from kasir.core.config import Settings
from kasir.models.sales import PaymentMethod, Receipt

RULE = "=" * 40
THIN_RULE = "-" * 40


def format_rupiah(amount: int) -> str:
    """Format whole rupiah with dot thousands separators, e.g. ``Rp 111.000``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(int(amount)):,}".replace(",", ".")


def receipt_filename(receipt: Receipt) -> str:
    return f"struk-{receipt.transaction_id}.txt"


def format_receipt_text(receipt: Receipt, settings: Settings) -> str:
    moment = receipt.timestamp.astimezone(store_zone(settings.store_timezone))
    tax_percent = round(settings.tax_rate * 100)

    lines = [
        settings.store_name,
        settings.store_address,
        f"Telp: {settings.store_phone}",
        f"NPWP: {settings.store_tax_id}",
        "",
        moment.strftime("%d/%m/%Y, %H.%M.%S"),
        f"Kasir: {settings.cashier_name} | ID: #{receipt.transaction_id}",
        "",
        RULE,
        "",
    ]
    for item in receipt.items:
        lines.append(item.name)
        lines.append(f"{item.quantity} x {format_rupiah(item.price)} = {format_rupiah(item.line_total)}")
        lines.append("")

    tender_label = "QRIS" if receipt.payment_method == PaymentMethod.QRIS else "Tunai"
    lines += [
        RULE,
        "",
        f"Subtotal: {format_rupiah(receipt.subtotal)}",
        f"PPN {tax_percent}%: {format_rupiah(receipt.tax)}",
        THIN_RULE,
        f"TOTAL: {format_rupiah(receipt.total)}",
        THIN_RULE,
        f"{tender_label}: {format_rupiah(receipt.cash)}",
        f"Kembalian: {format_rupiah(receipt.change)}",
        "",
        RULE,
        "",
        "*** TERIMA KASIH ***",
        "Barang yang sudah dibeli tidak dapat ditukar/dikembalikan",
        "Simpan struk ini sebagai bukti pembelian",
    ]
    return "\n".join(lines) + "\n"

# accounting/chart.py
"""
Default chart of accounts.

Rows are (code, name, legacy type label, is_cash). The type label is
normalised through Account.normalize_category when the row is written.
"""

from django.db import transaction

from accounting.models import Account


DEFAULT_CHART = [
    ("1101", "Kas", "Aktiva", True),
    ("1102", "Bank BCA", "Aktiva", True),
    ("1103", "Bank Mandiri", "Aktiva", True),
    ("1104", "Bank BNI", "Aktiva", True),
    ("1105", "Bank BRI", "Aktiva", True),
    ("1201", "Piutang Usaha", "Aktiva", False),
    ("1301", "Pekerjaan Dalam Proses (WIP)", "Aktiva", False),
    ("1501", "Mesin Boring", "Aset Tetap", False),
    ("1502", "Mesin Sondir", "Aset Tetap", False),
    ("1503", "Kendaraan Operasional", "Aset Tetap", False),
    ("1504", "Peralatan Kantor", "Aset Tetap", False),
    ("1505", "Bangunan Kantor", "Aset Tetap", False),
    ("1601", "Akumulasi Penyusutan Mesin Boring", "Kontra Aset", False),
    ("1602", "Akumulasi Penyusutan Mesin Sondir", "Kontra Aset", False),
    ("1603", "Akumulasi Penyusutan Kendaraan", "Kontra Aset", False),
    ("1604", "Akumulasi Penyusutan Peralatan Kantor", "Kontra Aset", False),
    ("1605", "Akumulasi Penyusutan Bangunan", "Kontra Aset", False),
    ("2101", "Hutang Bank Jangka Pendek", "Kewajiban", False),
    ("2102", "Hutang Usaha", "Kewajiban", False),
    ("2103", "Hutang Pajak", "Kewajiban", False),
    ("2104", "Beban Yang Masih Harus Dibayar", "Kewajiban", False),
    ("2201", "Hutang Bank Jangka Panjang", "Kewajiban", False),
    ("2202", "Hutang Leasing", "Kewajiban", False),
    ("3101", "Modal Saham", "Ekuitas", False),
    ("3102", "Laba Ditahan", "Ekuitas", False),
    ("4001", "Pendapatan Jasa Boring", "Pendapatan", False),
    ("4002", "Pendapatan Jasa Sondir", "Pendapatan", False),
    ("4003", "Pendapatan Jasa Konsultasi", "Pendapatan", False),
    ("5101", "Beban Proyek - Material", "Beban", False),
    ("5102", "Beban Proyek - Tenaga Kerja", "Beban", False),
    ("5103", "Beban Proyek - Sewa Peralatan", "Beban", False),
    ("5104", "Beban Proyek - Transportasi", "Beban", False),
    ("5105", "Beban Proyek - Lain-lain", "Beban", False),
    ("6101", "Beban Operasional Kantor", "Beban", False),
    ("6102", "Beban Gaji & Tunjangan", "Beban", False),
    ("6103", "Beban Listrik & Air", "Beban", False),
    ("6104", "Beban Internet & Telekomunikasi", "Beban", False),
    ("6105", "Beban Penyusutan", "Beban", False),
]


@transaction.atomic
def seed_chart(rows=None) -> tuple[int, int]:
    """
    Create missing accounts. Existing codes are left untouched.

    Returns:
        (created, skipped)
    """
    rows = DEFAULT_CHART if rows is None else rows
    existing = set(Account.objects.values_list("code", flat=True))
    created = 0
    skipped = 0
    for code, name, type_label, is_cash in rows:
        if code in existing:
            skipped += 1
            continue
        Account.objects.create(
            code=code,
            name=name,
            category=Account.normalize_category(type_label),
            is_cash=is_cash,
        )
        created += 1
    return created, skipped

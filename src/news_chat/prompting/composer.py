from datetime import datetime

NO_NEWS_PLACEHOLDER = "Tidak ditemukan berita relevan."
UNKNOWN_ANSWER = "Maaf, saya tidak tahu."

INDONESIAN_MONTHS = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)

ANSWER_INSTRUCTIONS = (
    "Jawablah dengan bahasa Indonesia yang baik dan jelas.",
    "Jika kamu menyebut informasi dari berita di atas, tambahkan nomor referensi [1], [2], dst. "
    "sesuai urutan berita.",
    "Jangan membuat informasi palsu.",
    f'Jika tidak tahu, katakan "{UNKNOWN_ANSWER}"',
)


def format_indonesian_date(moment: datetime) -> str:
    return f"{moment.day} {INDONESIAN_MONTHS[moment.month - 1]} {moment.year}"


def compose_prompt(user_prompt: str, news_text: str, now: datetime | None = None) -> str:
    """Build the single text block sent to the model.

    Deterministic for a fixed ``now``. An empty ``news_text`` is replaced by a
    fixed placeholder so the model is told explicitly that no news was found.
    """
    moment = now or datetime.now()
    instructions = "\n".join(f"- {line}" for line in ANSWER_INSTRUCTIONS)
    return "\n".join(
        [
            f"Tahun: {moment.year}",
            f"Tanggal saat ini: {format_indonesian_date(moment)}",
            "",
            "Berita atau fakta tambahan (dari GNews):",
            news_text or NO_NEWS_PLACEHOLDER,
            "",
            "Pertanyaan pengguna:",
            user_prompt,
            "",
            "Instruksi:",
            instructions,
        ]
    )

"""User-facing message templates.

Contains all user-facing messages in Indonesian: URL rejection texts, HTTP
error messages and the fallback assessment wording. Centralizes message
management for consistent wording across the API and the scrapers.
"""

SUPPORTED_LINKS_HINT = (
    "✅ OLX: https://www.olx.co.id/item/[listing-id]\n"
    "✅ Mobil123: https://www.mobil123.com/dijual/[car-details]"
)

MANUAL_INSPECTION_HINT = (
    "🔧 SOLUSI: Untuk mobil dari sumber lain, kami menyediakan layanan INSPEKSI LANGSUNG "
    "oleh teknisi berpengalaman. Inspeksi manual ini jauh lebih akurat daripada analisis otomatis!\n\n"
    "💡 Hubungi kami untuk jadwal inspeksi profesional ke lokasi mobil."
)

# URL rejection messages, one per RejectionReason
URL_MALFORMED = "Format URL tidak valid. Salin link lengkap dari halaman iklan mobil."

URL_INSECURE_SCHEME = "URL harus menggunakan HTTPS."

URL_HOST_NOT_ALLOWED = (
    "🚫 URL tidak didukung! Saat ini kami hanya dapat menganalisis mobil dari:\n\n"
    f"{SUPPORTED_LINKS_HINT}\n\n"
    f"{MANUAL_INSPECTION_HINT}"
)

URL_NOT_DETAIL_PAGE = (
    "🚫 Link ini bukan halaman detail iklan mobil. Halaman pencarian atau kategori "
    "tidak dapat dianalisis. Gunakan link iklan seperti:\n\n"
    f"{SUPPORTED_LINKS_HINT}\n\n"
    f"{MANUAL_INSPECTION_HINT}"
)

# HTTP layer
ERROR_URL_REQUIRED = "URL diperlukan"
ERROR_URL_UNSUPPORTED = "URL tidak didukung untuk analisis AI"
ERROR_ANALYSIS_FAILED = "Gagal menganalisis mobil"
ERROR_ANALYSIS_FAILED_DETAILS = (
    "Pastikan link valid dan dapat diakses. Anda tetap dapat memesan inspeksi manual."
)

# Degraded listing
DEGRADED_TITLE = "Data tidak dapat diambil dari {platform}"

# Fallback assessment when the classifier is unavailable or there are no photos
FALLBACK_FINDINGS = [
    "⚠️ Analisis terbatas untuk {title}",
    "🔍 Foto tidak dapat dianalisis dengan AI - data sangat terbatas",
    "⚡ Banyak aspek kondisi mobil tidak dapat diperiksa dari foto",
    "🔧 WAJIB menggunakan inspeksi teknisi profesional sebelum membeli",
]

FALLBACK_RECOMMENDATION = (
    "🚨 PERINGATAN: Tanpa analisis AI yang proper untuk {title}, risiko pembelian sangat tinggi. "
    "JANGAN membeli tanpa inspeksi teknisi profesional terlebih dahulu."
)

FALLBACK_DETAILED_ANALYSIS = {
    "exterior": ["🚨 Kondisi eksterior tidak dapat dianalisis tanpa AI vision"],
    "interior": ["🚨 Interior tidak dapat diperiksa dari foto - risiko sangat tinggi"],
    "engine": ["🚨 Kondisi mesin tidak diketahui - inspeksi teknisi WAJIB"],
    "photoQuality": ["📷 Tidak dapat menilai kualitas foto tanpa AI vision"],
    "overall": (
        "🚨 Analisis otomatis terbatas. Inspeksi teknisi profesional MUTLAK diperlukan "
        "sebelum keputusan pembelian!"
    ),
}

NO_PHOTOS_FINDING = "📷 Tidak ada foto yang dapat diproses dari iklan ini"

CLASSIFIER_DEFAULT_FINDINGS = [
    "⚠️ Analisis terbatas berdasarkan foto yang tersedia",
    "🔍 Kondisi sebenarnya perlu verifikasi langsung di lokasi",
    "⚡ Area tersembunyi tidak dapat diperiksa melalui foto",
    "🔧 Inspeksi teknisi profesional sangat direkomendasikan",
]

CLASSIFIER_DEFAULT_RECOMMENDATION = (
    "⚠️ Berdasarkan analisis foto {title}, terdapat keterbatasan dalam penilaian visual. "
    "SANGAT DISARANKAN untuk menggunakan jasa inspeksi teknisi profesional sebelum memutuskan pembelian."
)

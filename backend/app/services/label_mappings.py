from .. import config

CANCER = "Cancer"
NON_CANCER = "Non-cancer"

MESSAGES = {
    "en": {
        CANCER: "See a doctor immediately!",
        NON_CANCER: "No cancer detected.",
        "prediction_error": "An error occurred while making the prediction",
        "prediction_limit_error": "An error occurred while making the prediction: upload limit exceeded",
        "model_unavailable": "Model is not ready, try again later",
    },
    "id": {
        CANCER: "Segera periksa ke dokter!",
        NON_CANCER: "Penyakit kanker tidak terdeteksi.",
        "prediction_error": "Terjadi kesalahan dalam melakukan prediksi",
        "prediction_limit_error": "Terjadi kesalahan dalam melakukan prediksi limit",
        "model_unavailable": "Model belum siap, coba lagi nanti",
    },
}


def get_message(key: str) -> str:
    """Look up a message in the configured locale, falling back to English."""
    catalog = MESSAGES.get(config.MESSAGE_LOCALE, MESSAGES["en"])
    return catalog.get(key, MESSAGES["en"][key])

"""Module-wide constants for the UrbanSense assistant."""

DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_LANGUAGE = "en-US"
DEFAULT_DEPLOYMENT = "production"
DEFAULT_PROXY_URL = "http://localhost:8000/api/analyze-image"
DEFAULT_LOCATION_URL = "http://ip-api.com/json/"
DEFAULT_MOCK_DELAY_S = 1.5
DEFAULT_ANALYSIS_TIMEOUT_S = 30.0
DEFAULT_LOCATION_TIMEOUT_S = 10.0
DEFAULT_THINKING_BUDGET = 0
DEFAULT_CAMERA_INDEX = 0
DEFAULT_JPEG_QUALITY = 80
DEFAULT_PREFS_PATH = "~/.urbansense/prefs.json"
DEFAULT_LOG_PATH = "logs/urbansense_events.jsonl"
DEFAULT_LOG_MAX_BYTES = 1_048_576
DEFAULT_DEBUG = False

API_KEY_ENV_CANDIDATES = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
DEPLOYMENTS = ("development", "production")
IMAGE_MIME_TYPE = "image/jpeg"

# Prompt composition
BASE_SYSTEM_INSTRUCTION = (
    "You are UrbanSenseAI, a helpful assistant for visually impaired individuals. "
    "Your user is pointing their phone camera at their surroundings. "
    "Your response will be read aloud, so it must be clear, concise, and descriptive. "
    "Focus on safety and awareness. Describe objects and their relative positions "
    "(e.g., 'to your left', 'in front of you', '10 meters away'). "
    "Do not use markdown or formatting in your response. "
    "If GPS coordinates are provided, use them to add geographical context, "
    "like identifying street names if signs are visible."
)

TASK_INSTRUCTIONS: dict[str, str] = {
    "find_bus": (
        "Look for a bus in the image. If you see one, read its number and any destination "
        "text clearly. You MUST estimate its distance in meters or feet and its location "
        "relative to the user (e.g., 'approaching on your right'). For example: 'Bus number "
        "42 to Downtown is about 20 meters away and approaching on your right.' If no bus is "
        "visible, state 'I do not see a bus.'"
    ),
    "cross_road": (
        "Analyze the intersection for crossing a road. Look for pedestrian signals (walk/don't "
        "walk signs), traffic lights, and vehicles. Announce the status of the signal. Describe "
        "any approaching or stopped vehicles, including their location and estimated distance. "
        "For example: 'The pedestrian sign shows a green walk signal. It is safe to cross. There "
        "is a blue car stopped about 15 meters away on your left.' or 'The pedestrian sign is "
        "red. Do not cross. A red car is approaching from your left, about 30 meters away.'"
    ),
    "explore": (
        "Describe the general scene to give me situational awareness. For all key objects you "
        "identify (like benches, doors, obstacles), you MUST estimate their distance in meters "
        "or feet and their direction relative to the user. For example: 'You are on a sidewalk "
        "next to a park. There is a bench about 3 meters in front of you and a trash can to "
        "your immediate right.'"
    ),
    "find_shop": (
        "Scan the image for any shopfronts or business signs. If the user is looking for a "
        "specific type of shop, prioritize that in your search. Read the names of any shops you "
        "can identify, and you MUST estimate their distance and direction. For example: 'I see "
        "a sign for a pharmacy about 10 meters ahead and to your right.' If you cannot identify "
        "any shops, state 'I do not see any shop signs.'"
    ),
}

USER_QUERY_TEMPLATE = ' The user is looking for: "{query}".'
COORDINATES_TEMPLATE = (
    " Current GPS coordinates are Latitude: {latitude}, Longitude: {longitude}."
)

MOCK_RESPONSES: dict[str, str] = {
    "find_bus": "I see bus number 123 to 'City Center' arriving on your right in about 15 meters.",
    "cross_road": "The pedestrian signal is green, it is safe to cross. A blue car is waiting on your left.",
    "explore": (
        "You are on a sidewalk next to a park. There is a bench 5 meters in front of you "
        "and a trash can to your right."
    ),
    "find_shop": "I can see a 'Corner Coffee Shop' about 20 meters ahead and to your left.",
}

# User-facing analysis messages
MSG_INVALID_CREDENTIAL = (
    "The API key is invalid or does not have permission to use the AI service. "
    "Please check your key."
)
MSG_DIRECT_FAILED = "Sorry, I could not analyze the image. Please try again."
MSG_SERVICE_UNAVAILABLE = (
    "The AI service is currently unavailable or experiencing issues. Please try again later."
)
MSG_NOT_AUTHORIZED = (
    "The application is not authorized to use the AI service. "
    "Please check the API key configuration."
)
MSG_UNEXPECTED_SERVICE_ERROR = (
    "An unexpected error occurred while communicating with the AI service."
)
MSG_CONNECTION_FAILED = (
    "Failed to connect to the analysis service. "
    "Please check your internet connection and try again."
)
MSG_EMPTY_RESPONSE = "The AI service returned an empty response. Please try again."
MSG_ANALYSIS_TIMEOUT = "The AI service took too long to respond. Please try again."
MSG_PROXY_EMPTY_ANALYSIS = "The AI analysis resulted in an empty response."
MSG_PROXY_INTERNAL_ERROR = (
    "An unexpected error occurred while communicating with the AI service. "
    "The issue has been logged."
)

# Provider-facing messages
MSG_CAPTURE_FAILED = "Failed to capture image."
MSG_CAMERA_UNAVAILABLE = (
    "Camera access denied or unavailable: {detail}. Please grant camera permissions."
)
MSG_CAMERA_UNSUPPORTED = "No camera is available on this device."
MSG_SPEECH_FAILED = "Speech output failed: {detail}."
MSG_SPEECH_UNSUPPORTED = "Speech synthesis is not supported on this device."
MSG_RECOGNITION_UNSUPPORTED = "Speech recognition is not supported on this device."
MSG_RECOGNITION_PERMISSION = (
    "Speech recognition error: microphone access denied. "
    "Please ensure microphone access is granted."
)
MSG_RECOGNITION_NO_SPEECH = "I did not hear anything. Please try again."
MSG_RECOGNITION_OTHER = "Speech recognition error: {detail}."
MSG_LOCATION_PERMISSION = "Location access denied."
MSG_LOCATION_UNAVAILABLE = "Location information is unavailable."
MSG_LOCATION_TIMEOUT = "The request to get user location timed out."
MSG_LOCATION_UNSUPPORTED = "Geolocation is not supported on this device."
MSG_UNKNOWN_ERROR = "An unknown error occurred."

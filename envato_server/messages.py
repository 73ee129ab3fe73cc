from .results import ErrorKind

MESSAGES = {
    ErrorKind.EMPTY_CODE: "Please enter a purchase code.",
    ErrorKind.INVALID_CODE: "Please enter a valid purchase code.",
    ErrorKind.TRANSPORT_FAILURE: "Problem in connecting.",
    ErrorKind.CODE_ALREADY_REGISTERED: "Purchase code already exists!",
    ErrorKind.MISSING_USERNAME: "Please enter a username.",
    ErrorKind.INVALID_EMAIL: "Please enter a valid email.",
    ErrorKind.MISSING_PASSWORD: "Please enter a password.",
    ErrorKind.USERNAME_TAKEN: "Sorry, that username already exists!",
    ErrorKind.EMAIL_TAKEN: "Sorry, that email address is already used!",
    ErrorKind.BAD_CREDENTIALS: "Unknown username or incorrect password.",
    ErrorKind.MISSING_THEME: "No theme is selected to ask question about!",
    ErrorKind.MISSING_TITLE: "You must enter a title for your question.",
    ErrorKind.MISSING_MESSAGE: "Provide your question details.",
    ErrorKind.MAILBOX_NOT_CONFIGURED: "Target Email address is not properly configured!",
    ErrorKind.MAIL_FAILED: "Server Error: mail delivery failed!",
}


def message_for(kind: ErrorKind) -> str:
    return MESSAGES[kind]


def messages_for(result) -> list:
    return [message_for(kind) for kind in result.errors]

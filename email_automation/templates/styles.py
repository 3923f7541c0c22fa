"""Static stylesheet fragments inlined into the email templates."""

BASE_STYLES = """
body, html {
    margin: 0;
    padding: 0;
    width: 100%;
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    line-height: 1.6;
    color: #333333;
    background-color: #f6f9fc;
}
.email-container {
    max-width: 600px;
    margin: 20px auto;
    background-color: #ffffff;
    border-radius: 8px;
    box-shadow: 0 2px 8px rgba(0, 0, 0, 0.05);
    overflow: hidden;
}
.content {
    padding: 32px 24px;
}
h1 {
    color: #2c3e50;
    font-size: 24px;
    font-weight: 600;
    margin: 0 0 24px;
    padding-bottom: 16px;
    border-bottom: 1px solid #eaeaea;
}
.email-paragraph {
    margin: 0 0 20px;
    color: #2c3e50;
}
.email-list {
    margin: 20px 0;
    padding-left: 20px;
}
.email-list-item {
    margin: 8px 0;
}
.email-heading {
    color: #111827;
    font-size: 20px;
    font-weight: 600;
    margin: 24px 0 16px 0;
}
.email-callout {
    border-left: 4px solid #2c3e50;
    background: #f8f9fa;
    padding: 12px 16px;
    margin: 16px 0;
}
.email-signature {
    margin: 32px 0 24px;
    padding-top: 20px;
    border-top: 1px solid #eaeaea;
    color: #4b5563;
    font-style: italic;
}
.footer {
    text-align: center;
    padding: 12px;
    background-color: #f8f9fa;
    color: #6b7280;
    font-size: 13px;
    border-top: 1px solid #eaeaea;
}
@media only screen and (max-width: 640px) {
    .email-container {
        margin: 0;
        border-radius: 0;
    }
    .content {
        padding: 24px 20px;
    }
}
""".strip()

NOTIFICATION_STYLES = """
.notification {
    border: 1px solid #e1e4e8;
    border-radius: 6px;
    box-shadow: 0 1px 3px rgba(0,0,0,0.1);
}
.notification-header {
    display: flex;
    align-items: center;
    justify-content: space-between;
    margin-bottom: 24px;
}
.priority-badge {
    display: inline-block;
    padding: 4px 8px;
    border-radius: 12px;
    color: white;
    font-size: 12px;
    font-weight: 500;
    text-transform: uppercase;
    letter-spacing: 0.5px;
}
.notification .email-paragraph {
    background: #f8f9fa;
    padding: 16px;
    border-radius: 4px;
    margin: 12px 0;
}
.notification .email-list {
    background: #f8f9fa;
    padding: 16px 16px 16px 36px;
    border-radius: 4px;
    margin: 12px 0;
}
""".strip()

PRIORITY_COLORS = {
    "high": "#dc3545",
    "medium": "#ffc107",
    "low": "#28a745",
}

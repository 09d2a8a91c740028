from datetime import date
from models import User, UserEventStats

RECOMMENDATIONS = [
    "Consider participating in more specialized conferences in your field",
    "Your organization skills could be leveraged for larger events",
    "Share your expertise by mentoring at upcoming hackathons",
]

def render_report(user: User, stats: UserEventStats, generated_on: date) -> str:
    """Render the participation report for a user from already computed stats."""
    lines = [
        f"AI-Generated Event Participation Report for {user.fullname}",
        "",
        "Summary of Activity:",
        f"- Total Events Attended: {stats.events_attended}",
        f"- Events Organized: {stats.events_organized}",
        f"- Certificates Earned: {stats.certificates_earned}",
        f"- Awards Won: {stats.awards_won}",
        "",
        "Analysis:",
        "Based on your participation, you show a strong interest in technical events, particularly in hackathons.",
        "Your active involvement in both attending and organizing events demonstrates leadership and community engagement.",
        "",
        "Recommendations:",
    ]
    lines += [f"{i}. {text}" for i, text in enumerate(RECOMMENDATIONS, start=1)]
    lines += ["", f"Generated on: {generated_on.isoformat()}", ""]
    return "\n".join(lines)

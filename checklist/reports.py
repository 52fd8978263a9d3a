"""
PDF reports for the checklist.

Three documents are produced: the per-user report handed out after a
submission, the consolidated admin report, and a single-question analysis.
Builders take plain dicts (as returned by the services) and return the PDF
as bytes.
"""
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import LANGUAGE_NAMES
from .services.stats import score_band
from .services.submissions import answer_summary, percentage

DEFAULT_TITLE = "Solid Edge Success Criteria Checklist"
HEADER_BLUE = colors.HexColor("#2980B9")
HEADER_GREEN = colors.HexColor("#4CAF50")

USER_BANDS = {
    "Excellent": "Excellent - Outstanding implementation!",
    "Good": "Good - Well implemented with minor improvements needed",
    "Average": "Average - Several areas need improvement",
    "Needs Improvement": "Needs Improvement - Significant gaps require attention",
}
ORG_BANDS = {
    "Excellent": "Excellent - Organization shows outstanding implementation",
    "Good": "Good - Strong implementation with minor optimization opportunities",
    "Average": "Average - Moderate implementation, focus on key improvement areas",
    "Needs Improvement": "Needs Attention - Significant implementation gaps require strategic focus",
}

_styles = getSampleStyleSheet()
TITLE = ParagraphStyle("ReportTitle", parent=_styles["Heading1"], fontSize=18, spaceAfter=12)
HEADING = ParagraphStyle("ReportHeading", parent=_styles["Heading2"], fontSize=13, spaceBefore=10, spaceAfter=6)
BODY = ParagraphStyle("ReportBody", parent=_styles["BodyText"], fontSize=10, leading=13)
BULLET = ParagraphStyle("ReportBullet", parent=BODY, leftIndent=12)
CELL = ParagraphStyle("ReportCell", parent=_styles["BodyText"], fontSize=8, leading=10)


def _p(text, style=BODY):
    return Paragraph(escape("" if text is None else str(text)), style)


def _language(code):
    return LANGUAGE_NAMES.get(code, code or "")


def _date(value, fmt="%Y-%m-%d %H:%M:%S"):
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime(fmt)


def _table(head, body, widths, header_color=HEADER_BLUE):
    data = [[_p(h, CELL) for h in head]] + [[_p(c, CELL) for c in row] for row in body]
    table = Table(data, colWidths=[w * mm for w in widths], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F5F5")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#CCCCCC")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def _distribution(summary, notes):
    total = summary["total"]
    return [
        _p(f"• Yes: {summary['yes']} ({percentage(summary['yes'], total)}%) - {notes[0]}", BULLET),
        _p(f"• No: {summary['no']} ({percentage(summary['no'], total)}%) - {notes[1]}", BULLET),
        _p(f"• N/A: {summary['na']} ({percentage(summary['na'], total)}%) - {notes[2]}", BULLET),
    ]


def _render(story, footer):
    buf = BytesIO()

    def _footer(canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawString(doc.leftMargin, 10 * mm, footer)
        canvas.drawRightString(doc.pagesize[0] - doc.rightMargin, 10 * mm, f"Page {doc.page}")
        canvas.restoreState()

    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=15 * mm, rightMargin=15 * mm,
                            topMargin=15 * mm, bottomMargin=18 * mm, title=footer)
    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buf.getvalue()


def build_user_report(response, answers, expected_questions, title=DEFAULT_TITLE) -> bytes:
    summary = answer_summary(answers)
    total = summary["total"]
    score = percentage(summary["yes"], total)

    story = [
        _p(title, TITLE),
        _p(f"Email: {response['email']}"),
        _p(f"Language: {_language(response['language'])}"),
        _p(f"Date: {_date(response['timestamp'])}"),
        Spacer(1, 6 * mm),
        _p("OVERALL SCORE SUMMARY", HEADING),
        _p(f"Performance Score: {score}% ({summary['yes']}/{total} criteria met)"),
        _p(f"Completion Rate: {percentage(total, expected_questions)}% "
           f"({total}/{expected_questions} questions answered)"),
        Spacer(1, 3 * mm),
        _p("Answer Distribution:"),
    ]
    story += _distribution(summary, ("Criteria successfully met",
                                     "Criteria not met, requires attention",
                                     "Not applicable to current setup"))
    story += [
        _p(f"Performance Analysis: {USER_BANDS[score_band(score)]}"),
        Spacer(1, 6 * mm),
        _table(["Area", "Activity/Feature", "Success Criteria", "Answer", "Remarks"],
               [[a["area"], a["activity"], a["criteria"], a["answer"], a["remarks"]] for a in answers],
               [28, 40, 52, 18, 42]),
    ]
    return _render(story, f"{title} Report")


def build_consolidated_report(responses, question_stats, details=None, title=DEFAULT_TITLE) -> bytes:
    """
    responses: response dicts, newest first
    question_stats: per-question counts (services.stats.question_statistics)
    details: response id -> {"answers": [...], "questions": [...]} where
             answers are the user's answers and questions every question of
             the user's language with that answer or "Not Answered"
    """
    details = details or {}
    en = sum(1 for r in responses if r["language"] == "EN")
    story = [
        _p("Consolidated Success Criteria Report", TITLE),
        _p(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"),
        _p(f"Total Responses: {len(responses)}"),
        _p(f"English: {en}, Bahasa Indonesia: {len(responses) - en}"),
    ]

    totals = {
        "yes": sum(int(s["yes_count"]) for s in question_stats),
        "no": sum(int(s["no_count"]) for s in question_stats),
        "na": sum(int(s["na_count"]) for s in question_stats),
    }
    totals["total"] = totals["yes"] + totals["no"] + totals["na"]
    if totals["total"]:
        rate = percentage(totals["yes"], totals["total"])
        story += [
            _p("OVERALL SCORE SUMMARY", HEADING),
            _p(f"Overall Success Rate: {rate}% ({totals['yes']}/{totals['total']} criteria met)"),
            _p(f"Total Assessments: {len(responses)} users completed evaluations"),
            Spacer(1, 3 * mm),
            _p("Consolidated Answer Distribution:"),
        ]
        story += _distribution(totals, ("Successfully implemented criteria",
                                        "Areas requiring improvement",
                                        "Not applicable across implementations"))
        story.append(_p(f"Organization Performance: {ORG_BANDS[score_band(rate)]}"))

    if question_stats:
        story += [
            _p("Question Statistics", HEADING),
            _table(["Area", "Activity/Feature", "Yes", "No", "N/A", "Total"],
                   [[s["area"], s["activity"], s["yes_count"], s["no_count"], s["na_count"],
                     s["total_responses"]] for s in question_stats],
                   [40, 70, 17, 17, 17, 17]),
        ]

    if responses:
        story += [PageBreak(), _p("Detailed User Responses", TITLE), _p("User Summary:", HEADING)]
        summary_rows = []
        for r in responses:
            s = answer_summary(details.get(r["id"], {}).get("answers", []))
            summary_rows.append([
                r["email"], _language(r["language"]), _date(r["timestamp"], "%Y-%m-%d"),
                f"{percentage(s['yes'], s['total'])}%", f"{s['yes']}/{s['no']}/{s['na']}",
                str(s["with_remarks"]),
            ])
        story.append(_table(["Email", "Language", "Date", "Score", "Yes/No/NA", "Remarks"],
                            summary_rows, [55, 30, 25, 20, 30, 20]))

        for r in responses:
            story += [
                Spacer(1, 6 * mm),
                _p(f"{r['email']} - Detailed Assessment", HEADING),
                _p(f"Language: {_language(r['language'])}"),
                _p(f"Date: {_date(r['timestamp'], '%Y-%m-%d %H:%M')}"),
            ]
            rows = details.get(r["id"], {}).get("questions", [])
            if rows:
                story.append(_table(["#", "Area", "Activity/Feature", "Answer", "Remarks"],
                                    [[i, q["area"], q["activity"], q["answer"], q["remarks"]]
                                     for i, q in enumerate(rows, start=1)],
                                    [10, 35, 60, 20, 55], header_color=HEADER_GREEN))

    return _render(story, f"{title} - Consolidated Report")


def build_question_report(question, answers) -> bytes:
    summary = answer_summary(answers)
    total = summary["total"]
    story = [
        _p("Question Analysis Report", TITLE),
        _p(f"Area: {question['area']}"),
        _p(f"Activity: {question['activity']}"),
        _p(f"Criteria: {question['criteria']}"),
        Spacer(1, 4 * mm),
        _p(f"Total Responses: {total}"),
        _p(f"Yes: {summary['yes']} ({percentage(summary['yes'], total)}%)"),
        _p(f"No: {summary['no']} ({percentage(summary['no'], total)}%)"),
        _p(f"N/A: {summary['na']} ({percentage(summary['na'], total)}%)"),
    ]
    remarks = [[a["answer"], a["remarks"]] for a in answers if (a.get("remarks") or "").strip()]
    if remarks:
        story += [Spacer(1, 4 * mm), _table(["Answer", "Remarks"], remarks, [30, 150])]
    return _render(story, "Question Analysis Report")

from __future__ import annotations

from dataclasses import replace

import pytest

from result_scraper.config_manager import ConfigManager, RetryPolicy, ScraperSettings


THEORY = [
    ("100101", "Mathematics-I", "52", "24", "76", "A", "4"),
    ("100102", "Physics", "40", "22", "62", "B", "3"),
]
PRACTICAL = [
    ("100107P", "Physics Lab", "18", "20", "38", "A+", "1.5"),
]
GRADES = ["7.45", "", "", "", "", "", "", "", "7.45"]


def make_result_page(
    theory=THEORY,
    practical=PRACTICAL,
    grades=GRADES,
    student_name="RAHUL KUMAR",
    exam_date="Examination Date : 15/05/2023",
    publish_date="Publish Date : 10/07/2023",
) -> str:
    def rows(subjects):
        out = "<tr><th>Code</th><th>Subject</th><th>ESE</th><th>IA</th><th>Total</th><th>Grade</th><th>Credit</th></tr>"
        for subject in subjects:
            out += "<tr>" + "".join(f"<td>{cell}</td>" for cell in subject) + "</tr>"
        return out

    grade_headers = "".join(f"<th>{label}</th>" for label in ["I", "II", "III", "IV", "V", "VI", "VII", "VIII", "Cur. CGPA"])
    grade_cells = "".join(f"<td>{value}</td>" for value in grades)

    return f"""
    <html><body><form>
      <table id="ContentPlaceHolder1_DataList4"><tr><td>
        <span id="ContentPlaceHolder1_DataList4_Exam_Name_0">B.Tech. 1st Semester Examination, 2023</span>
      </td></tr></table>
      <table id="ContentPlaceHolder1_DataList1"><tr><td>
        <span id="ContentPlaceHolder1_DataList1_StudentNameLabel_0">{student_name}</span>
        <span id="ContentPlaceHolder1_DataList1_CollegeNameLabel_0">Government Engineering College, Vaishali</span>
        <span id="ContentPlaceHolder1_DataList1_CourseLabel_0">Civil Engineering</span>
      </td></tr></table>
      <table id="ContentPlaceHolder1_DataList2"><tr>
        <td><span id="ContentPlaceHolder1_DataList2_Exam_Name_0">I</span></td>
        <td>{exam_date}</td>
      </tr></table>
      <table id="ContentPlaceHolder1_GridView1">{rows(theory)}</table>
      <table id="ContentPlaceHolder1_GridView2">{rows(practical)}</table>
      <table id="ContentPlaceHolder1_DataList5"><tr><td>
        SGPA <span id="ContentPlaceHolder1_DataList5_GROSSTHEORYTOTALLabel_0">7.45</span>
      </td></tr></table>
      <table id="ContentPlaceHolder1_GridView3">
        <tr>{grade_headers}</tr>
        <tr>{grade_cells}</tr>
      </table>
      <table id="ContentPlaceHolder1_DataList3">
        <tr><td>Remarks</td></tr>
        <tr><td>{publish_date}</td></tr>
      </table>
    </form></body></html>
    """


@pytest.fixture
def settings() -> ScraperSettings:
    base = ConfigManager().get_settings()
    return replace(base, retry=RetryPolicy(max_retries=3, initial_delay_ms=1000, backoff_factor=2.0))


@pytest.fixture
def result_page() -> str:
    return make_result_page()


@pytest.fixture
def page_factory():
    return make_result_page

from reservations.submission.metrics import SubmissionStats


def test_submission_stats_records_success_and_failure():
    stats = SubmissionStats()

    stats.record_success(execution_time=2.0)
    stats.record_failure(execution_time=4.0)
    stats.record_failure(execution_time="bad")

    assert stats.successful_bookings == 1
    assert stats.failed_bookings == 2
    assert stats.total_attempts == 3
    assert stats.avg_execution_time == 2.0
    assert round(stats.success_rate, 2) == 33.33


def test_submission_stats_report_lists_batches():
    stats = SubmissionStats()

    stats.record_batch(partial=True)
    stats.record_batch(partial=False)
    report = stats.format_report()

    assert "Recurring Batches: 2 (1 partial)" in report
    assert "Success Rate: 0.00%" in report

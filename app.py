import os
import logging
from flask import Flask, render_template, request, jsonify
from werkzeug.exceptions import HTTPException

from services.run_service import MigrationRunService

# Configure logging
log = logging.getLogger('werkzeug')
log.setLevel(logging.ERROR)

# Initialize Flask app
flask_app = Flask(__name__)
flask_app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key')

# Initialize services
run_service = MigrationRunService()


def _run_to_response(run):
    """Run as returned by the API: camelCase keys plus the ui-facing fields."""
    data = run.to_dict()
    return {
        'id': data['run_id'],
        'state': data['status'],
        'workspaceId': data['workspace_id'],
        'dataflowId': data['dataflow_id'],
        'startTime': data['start_ts'],
        'endTime': data['end_ts'],
        'logPath': data['log_path'],
        'summaryPath': data['summary_path'],
        'hasFailures': data['has_failures'],
        'error': data['error']
    }


# ===== ROUTES =====

@flask_app.route('/')
@flask_app.route('/migration')
def migration_page():
    """Migration runs page: recent runs and a form to start a new one."""
    return render_template('migration.html')


# ===== API ROUTES =====

@flask_app.route('/api/migration/runs', methods=['GET'])
def api_list_runs():
    """List recent migration runs, newest first."""
    try:
        runs = run_service.list_runs()
        return jsonify({
            'success': True,
            'runs': [_run_to_response(r) for r in runs]
        })
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


@flask_app.route('/api/migration/runs/<run_id>', methods=['GET'])
def api_get_run(run_id):
    """Get one migration run (for polling)."""
    try:
        run = run_service.get_run(run_id)
        if not run:
            return jsonify({'success': False, 'error': 'Run not found'}), 404

        return jsonify({
            'success': True,
            'run': _run_to_response(run)
        })
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


@flask_app.route('/api/migration/start', methods=['POST'])
def api_start_migration():
    """Start a migration run in the background.

    Optional query parameters: workspaceId (id or name), dataflowId (UUID).
    """
    try:
        workspace_id = request.args.get('workspaceId')
        dataflow_id = request.args.get('dataflowId')

        run = run_service.start_run(workspace_id, dataflow_id)
        return jsonify({
            'success': True,
            'runId': run.run_id,
            'run': _run_to_response(run)
        })
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


# ===== ERROR HANDLERS =====

@flask_app.errorhandler(HTTPException)
def handle_http_exception(e):
    """Handle HTTP exceptions."""
    return jsonify({'success': False, 'error': str(e)}), e.code


@flask_app.errorhandler(Exception)
def handle_exception(e):
    """Handle all other exceptions."""
    logging.error(f"Unhandled exception: {e}", exc_info=True)
    return jsonify({'success': False, 'error': 'Internal server error'}), 500


if __name__ == '__main__':
    # Use PORT environment variable for Databricks Apps, fallback to 8080 for local dev
    port = int(os.environ.get('PORT', 8080))
    flask_app.run(debug=True, host='0.0.0.0', port=port)

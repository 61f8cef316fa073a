"""The shared request primitive emitted next to generated clients."""

from jinja2 import Template

from .parser import HTTP_METHODS


def render_request_runtime() -> str:
    """Render request.ts."""
    return REQUEST_TEMPLATE.render(methods=[method.upper() for method in HTTP_METHODS])


REQUEST_TEMPLATE_STR = '''\
// Shared request primitive for clients generated by openapi2ts. Do not edit manually.

export type RequestMethod = {% for method in methods %}'{{ method }}'{% if not loop.last %} | {% endif %}{% endfor %};

export interface RequestOptions {
  signal?: AbortSignal;
  headers?: Record<string, string>;
}

export type RequestErrorKind = 'Aborted' | 'ApiFailure' | 'TransportFailure';

export class RequestError extends Error {
  readonly kind: RequestErrorKind;
  readonly code?: number;

  constructor(kind: RequestErrorKind, message: string, code?: number) {
    super(message);
    this.name = 'RequestError';
    this.kind = kind;
    this.code = code;
  }
}

export interface RequestClient {
  request<T>(url: string, method: RequestMethod, data?: unknown, options?: RequestOptions): Promise<T>;
}

export interface FetchClientOptions {
  baseUrl?: string;
  defaultHeaders?: Record<string, string>;
  timeout?: number;
  responseHandler?: (response: Response) => Promise<unknown>;
}

export class FetchRequestClient implements RequestClient {
  private readonly baseUrl: string;
  private readonly defaultHeaders: Record<string, string>;
  private readonly timeout?: number;
  private readonly responseHandler?: (response: Response) => Promise<unknown>;

  constructor(options: FetchClientOptions = {}) {
    this.baseUrl = options.baseUrl ?? '';
    this.defaultHeaders = { ...options.defaultHeaders };
    this.timeout = options.timeout;
    this.responseHandler = options.responseHandler;
  }

  setToken(token: string): void {
    this.defaultHeaders['Authorization'] = `Bearer ${token}`;
  }

  getToken(): string | null {
    return this.defaultHeaders['Authorization']?.replace('Bearer ', '') ?? null;
  }

  async request<T>(url: string, method: RequestMethod, data?: unknown, options: RequestOptions = {}): Promise<T> {
    if (options.signal?.aborted) {
      throw new RequestError('Aborted', 'The operation was aborted.');
    }

    const controller = new AbortController();
    const onAbort = () => controller.abort();
    options.signal?.addEventListener('abort', onAbort);
    const timer = this.timeout !== undefined ? setTimeout(() => controller.abort(), this.timeout) : undefined;

    let response: Response;
    try {
      response = await fetch(this.baseUrl + url, {
        method,
        headers: { 'Content-Type': 'application/json', ...this.defaultHeaders, ...options.headers },
        body: data === undefined ? undefined : JSON.stringify(data),
        signal: controller.signal,
      });
    } catch (error) {
      if (options.signal?.aborted) {
        throw new RequestError('Aborted', 'The operation was aborted.');
      }
      if (controller.signal.aborted) {
        throw new RequestError('TransportFailure', 'The request timed out.');
      }
      throw new RequestError('TransportFailure', error instanceof Error ? error.message : String(error));
    } finally {
      if (timer !== undefined) {
        clearTimeout(timer);
      }
      options.signal?.removeEventListener('abort', onAbort);
    }

    if (this.responseHandler) {
      return (await this.responseHandler(response)) as T;
    }

    const text = await response.text();
    let body: any = text;
    try {
      body = text ? JSON.parse(text) : undefined;
    } catch {
      // non-JSON payloads are returned as text
    }

    if (!response.ok) {
      throw new RequestError('ApiFailure', body?.message ?? 'Request failed', response.status);
    }
    return body as T;
  }
}

export function createFetchClient(options: FetchClientOptions = {}): FetchRequestClient {
  return new FetchRequestClient(options);
}
'''

REQUEST_TEMPLATE = Template(REQUEST_TEMPLATE_STR, keep_trailing_newline=True)
